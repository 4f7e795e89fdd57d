"""
Response envelope helpers shared by all routers
"""
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from fastapi.encoders import jsonable_encoder


def envelope(data: Any, meta: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    """Wrap a success payload as {"data": ..., "meta"?: ...}."""
    body: Dict[str, Any] = {"data": jsonable_encoder(data)}
    if meta is not None:
        body["meta"] = jsonable_encoder(meta)
    return body


def request_meta(**extra: Any) -> Dict[str, Any]:
    meta = {"timestamp": datetime.now(timezone.utc).isoformat()}
    meta.update(extra)
    return meta
