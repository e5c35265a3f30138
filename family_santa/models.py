from datetime import datetime
from flask_login import UserMixin
from .extensions import db, login_manager


class Family(db.Model):
    __tablename__ = "families"

    id = db.Column(db.Integer, primary_key=True)
    # optional label from the import file (object keys), purely informational
    label = db.Column(db.String(64), nullable=True)

    members = db.relationship("Person", back_populates="family", order_by="Person.id")


class Person(UserMixin, db.Model):
    __tablename__ = "persons"

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(64), unique=True, nullable=False)
    participation = db.Column(db.Integer, default=1, nullable=False)

    family_id = db.Column(db.Integer, db.ForeignKey("families.id", ondelete="CASCADE"), nullable=False)
    family = db.relationship("Family", back_populates="members")

    # Persons are imported by the organizer; the passphrase is set when they claim the account.
    passkey_hash = db.Column(db.String(255), nullable=True)
    claimed_at = db.Column(db.DateTime, nullable=True)

    imported_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)

    # Encrypted recipient names (Fernet tokens), one row per recipient.
    assignments = db.relationship(
        "AssignmentEdge",
        back_populates="giver",
        cascade="all, delete-orphan",
        order_by="AssignmentEdge.id",
    )

    @property
    def is_claimed(self) -> bool:
        return self.passkey_hash is not None


class ForbiddenPair(db.Model):
    """
    Directed constraint: giver_name cannot gift to receiver_name.
    Stored by name so entries for people not (yet) imported are kept.
    """
    __tablename__ = "forbidden_pairs"
    id = db.Column(db.Integer, primary_key=True)

    giver_name = db.Column(db.String(64), nullable=False, index=True)
    receiver_name = db.Column(db.String(64), nullable=False)

    __table_args__ = (
        db.UniqueConstraint("giver_name", "receiver_name", name="uq_forbidden_giver_receiver"),
    )


class AssignmentEdge(db.Model):
    __tablename__ = "assignment_edges"

    id = db.Column(db.Integer, primary_key=True)
    giver_id = db.Column(db.Integer, db.ForeignKey("persons.id", ondelete="CASCADE"), nullable=False)
    recipient_ciphertext = db.Column(db.Text, nullable=False)

    giver = db.relationship("Person", back_populates="assignments")


class AssignmentState(db.Model):
    __tablename__ = "assignment_state"

    id = db.Column(db.Integer, primary_key=True)
    run_at = db.Column(db.DateTime, nullable=True)
    is_locked = db.Column(db.Boolean, default=False, nullable=False)
    # number of candidates drawn for the current assignment
    attempts = db.Column(db.Integer, nullable=True)

    @classmethod
    def get_singleton(cls):
        obj = cls.query.first()
        if not obj:
            obj = cls()
            db.session.add(obj)
            db.session.commit()
        return obj


@login_manager.user_loader
def load_user(user_id: str):
    return db.session.get(Person, int(user_id))
