"""Clinical domain value objects."""
from clinical.domain.value_objects.attachment import Attachment
from clinical.domain.value_objects.auth_context import AuthContext

__all__ = ["Attachment", "AuthContext"]
