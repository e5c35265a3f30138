from __future__ import annotations

import json

from flask import Blueprint, Response, render_template, redirect, url_for, flash, request
from flask_login import current_user

from ..models import AssignmentState, Family, Person
from ..policies import LoginRequiredMixin, AdminRequiredMixin, ViewOnlyWhenLockedMixin, is_admin_user
from ..services.assignments import (
    assignments_for,
    export_assignments,
    run_and_lock_assignments,
    unset_and_unlock_assignments,
)
from ..services.loaders import dump_assignment
from ..services.preferences import get_forbidden_for, set_forbidden_for
from ..services.registry import AssignmentError

santa_bp = Blueprint("santa", __name__)


class DashboardView(LoginRequiredMixin):
    def get(self):
        state = AssignmentState.get_singleton()
        return render_template(
            "santa/dashboard.html",
            assignment_locked=state.is_locked,
            assignment_run_at=state.run_at,
            attempts=state.attempts,
            num_participants=Person.query.count(),
            num_families=Family.query.count(),
            is_admin=is_admin_user(),
        )


class MyAssignmentView(LoginRequiredMixin):
    def get(self):
        recipients = assignments_for(current_user)
        if not recipients:
            flash("Assignments have not been run yet (or you are not in the draw).", "info")
            return redirect(url_for("santa.dashboard"))
        return render_template("santa/assignment.html", recipients=recipients)


class PreferencesView(ViewOnlyWhenLockedMixin):
    def _candidates(self) -> list[Person]:
        # own family is excluded by the draw anyway
        return (
            Person.query.filter(Person.family_id != current_user.family_id)
            .order_by(Person.name.asc())
            .all()
        )

    def get(self):
        state = AssignmentState.get_singleton()
        outgoing, incoming = get_forbidden_for(current_user.name)
        return render_template(
            "santa/preferences.html",
            candidates=self._candidates(),
            outgoing=outgoing,
            incoming=incoming,
            locked=state.is_locked,
            assignment_run_at=state.run_at,
        )

    def post(self):
        # ViewOnlyWhenLockedMixin blocks POST when locked
        valid_names = {p.name for p in self._candidates()}
        dont_gift_to = {name for name in request.form.getlist("dont_gift_to") if name in valid_names}

        set_forbidden_for(current_user.name, dont_gift_to, among=valid_names)
        flash("Preferences saved.", "success")
        return redirect(url_for("santa.preferences"))


class AdminRunAssignmentsView(AdminRequiredMixin):
    def post(self):
        try:
            run_and_lock_assignments()
            flash("Assignments have been run and locked.", "success")
        except AssignmentError as e:
            flash(f"Failed to run assignments: {e}", "error")
        return redirect(url_for("santa.dashboard"))


class AdminUnsetAssignmentsView(AdminRequiredMixin):
    def post(self):
        unset_and_unlock_assignments()
        flash("Assignments unset and unlocked. Users can update preferences; you can rerun assignments.", "success")
        return redirect(url_for("santa.dashboard"))


class AdminParticipantsView(AdminRequiredMixin):
    def get(self):
        state = AssignmentState.get_singleton()
        families = Family.query.order_by(Family.id.asc()).all()
        return render_template(
            "santa/admin_participants.html",
            families=families,
            locked=state.is_locked,
        )


class AdminExportView(AdminRequiredMixin):
    def get(self):
        try:
            data = export_assignments()
        except AssignmentError as e:
            flash(str(e), "error")
            return redirect(url_for("santa.dashboard"))

        return Response(
            json.dumps(dump_assignment(data), indent=4, ensure_ascii=False),
            mimetype="application/json",
            headers={"Content-Disposition": "attachment; filename=assignments.json"},
        )


# Register routes
santa_bp.add_url_rule("/dashboard", view_func=DashboardView.as_view("dashboard"))
santa_bp.add_url_rule("/my-assignment", view_func=MyAssignmentView.as_view("my_assignment"))
santa_bp.add_url_rule("/preferences", view_func=PreferencesView.as_view("preferences"), methods=["GET", "POST"])

santa_bp.add_url_rule("/admin/run-assignments", view_func=AdminRunAssignmentsView.as_view("admin_run_assignments"), methods=["POST"])
santa_bp.add_url_rule("/admin/unset-assignments", view_func=AdminUnsetAssignmentsView.as_view("admin_unset_assignments"), methods=["POST"])

santa_bp.add_url_rule("/admin/participants", view_func=AdminParticipantsView.as_view("admin_participants"))
santa_bp.add_url_rule("/admin/export", view_func=AdminExportView.as_view("admin_export"))
