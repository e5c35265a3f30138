from __future__ import annotations

from datetime import datetime

from flask import Blueprint, render_template, redirect, url_for, flash, request
from flask.views import MethodView
from flask_login import login_user, logout_user, current_user

from ..extensions import db
from ..models import Person
from ..security import hash_passphrase, verify_passphrase


auth_bp = Blueprint("auth", __name__, url_prefix="/auth")

MIN_PASSPHRASE_LENGTH = 8


class ClaimView(MethodView):
    """
    Persons are imported by the organizer; each one claims their entry
    by choosing a passphrase the first time.
    """
    def get(self):
        if current_user.is_authenticated:
            return redirect(url_for("santa.dashboard"))
        return render_template("auth/claim.html")

    def post(self):
        if current_user.is_authenticated:
            return redirect(url_for("santa.dashboard"))

        name = (request.form.get("name") or "").strip()
        passphrase = request.form.get("passphrase") or ""

        if not name:
            flash("Name is required.", "error")
            return render_template("auth/claim.html"), 400

        if len(passphrase) < MIN_PASSPHRASE_LENGTH:
            flash(f"Passphrase must be at least {MIN_PASSPHRASE_LENGTH} characters.", "error")
            return render_template("auth/claim.html"), 400

        p = Person.query.filter_by(name=name).first()
        if not p:
            flash("That name is not on the list. Ask the organizer to add you.", "error")
            return render_template("auth/claim.html"), 404

        if p.is_claimed:
            flash("That name has already been claimed.", "error")
            return render_template("auth/claim.html"), 409

        p.passkey_hash = hash_passphrase(passphrase)
        p.claimed_at = datetime.utcnow()
        db.session.commit()

        flash("Claimed. You can now log in.", "success")
        return redirect(url_for("auth.login"))


class LoginView(MethodView):
    def get(self):
        if current_user.is_authenticated:
            return redirect(url_for("santa.dashboard"))
        return render_template("auth/login.html")

    def post(self):
        if current_user.is_authenticated:
            return redirect(url_for("santa.dashboard"))

        name = (request.form.get("name") or "").strip()
        passphrase = request.form.get("passphrase") or ""

        if not name:
            flash("Name is required.", "error")
            return render_template("auth/login.html"), 400

        user = Person.query.filter_by(name=name).first()
        if not user or not passphrase or not verify_passphrase(passphrase, user.passkey_hash):
            flash("Invalid name or passphrase.", "error")
            return render_template("auth/login.html"), 401

        login_user(user)
        return redirect(url_for("santa.dashboard"))


class LogoutView(MethodView):
    def get(self):
        if current_user.is_authenticated:
            logout_user()
        return redirect(url_for("auth.login"))


auth_bp.add_url_rule("/claim", view_func=ClaimView.as_view("claim"), methods=["GET", "POST"])
auth_bp.add_url_rule("/login", view_func=LoginView.as_view("login"), methods=["GET", "POST"])
auth_bp.add_url_rule("/logout", view_func=LogoutView.as_view("logout"), methods=["GET"])
