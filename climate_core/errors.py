# climate_core/errors.py


class ClimateDashboardError(Exception):
    """Base class for dashboard failures that stay local to one panel."""


class CollaboratorUnavailable(ClimateDashboardError):
    """An external service failed or sent an unusable reply."""

    def __init__(self, collaborator: str, detail: str = ""):
        self.collaborator = collaborator
        self.detail = detail
        msg = f"{collaborator} unavailable"
        if detail:
            msg += f": {detail}"
        super().__init__(msg)
