from __future__ import annotations

from flask import Blueprint, render_template
from flask.views import MethodView

from ..models import AssignmentState, Family, Person


public_bp = Blueprint("public", __name__)


class LandingView(MethodView):
    def get(self):
        state = AssignmentState.get_singleton()
        return render_template(
            "landing.html",
            assignment_locked=state.is_locked,
            assignment_run_at=state.run_at,
            num_participants=Person.query.count(),
            num_families=Family.query.count(),
        )


public_bp.add_url_rule("/", view_func=LandingView.as_view("landing"))
