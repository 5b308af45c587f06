"""Idea command app definition."""

from cyclopts import App

app = App(
    name="idea",
    help="Track ideas through the backlog, active and done stages",
    help_on_error=True,
)
