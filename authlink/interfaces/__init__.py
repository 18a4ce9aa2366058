from .permission_gate import PermissionGate
from .status_sink import StatusEvent, StatusSink

__all__ = ["PermissionGate", "StatusEvent", "StatusSink"]
