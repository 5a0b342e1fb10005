"""Failure taxonomy for the live dashboard.

Every failure ends up as one user-facing string shown in place of the
dashboard content; ``user_message`` builds that string.
"""


class DashboardError(Exception):
    """Base class for failures that put the dashboard in the error state."""

    prefix = "Error"

    @property
    def user_message(self) -> str:
        detail = str(self)
        return f"{self.prefix}: {detail}" if detail else self.prefix


class ConfigurationMissingError(DashboardError):
    """No usable backend credentials were found in any source."""

    prefix = "Configuración de servicios no detectada."

    @property
    def user_message(self) -> str:
        return self.prefix


class AuthenticationError(DashboardError):
    """The auth service rejected or failed the sign-in request."""

    prefix = "Fallo de Autenticación"


class SubscriptionError(DashboardError):
    """Opening or maintaining the live collection subscription failed."""

    prefix = "Error de Firestore"
