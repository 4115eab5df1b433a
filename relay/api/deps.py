from typing import Any, Callable, Dict, Optional
from fastapi import Header, HTTPException

DispatchTrigger = Callable[[str, Dict[str, Any], Any], None]


def get_current_user_id(x_user_id: Optional[str] = Header(None)) -> str:
    """Owner identity handed over by the upstream auth layer."""
    if not x_user_id:
        raise HTTPException(status_code=401, detail="Authentication required")
    return x_user_id


def get_dispatch_trigger() -> DispatchTrigger:
    """How the ingress route hands a payload to background delivery."""
    from relay.tasks.delivery_task import trigger_dispatch
    return trigger_dispatch
