"""
In-process WebSocket fan-out for the manager's live lists.

Subscribers receive the whole list on connect and again after every change
(``{"topic": ..., "items": [...]}``); there are no incremental diffs.
"""
import json
import logging
from typing import Dict, Iterable, List, Optional

from fastapi import WebSocket
from fastapi.concurrency import run_in_threadpool
from sqlalchemy.orm import Session

from catering.db.session import SessionLocal
from catering.models.user import User
from catering.services.accounting_service import TransactionFilter, list_transactions, transaction_to_dict
from catering.services.staff_schedule_service import all_assignments

logger = logging.getLogger(__name__)

TOPICS = ("transactions", "staff-assignments")


class ConnectionManager:
    def __init__(self):
        self.active_connections: Dict[str, List[WebSocket]] = {}

    async def connect(self, websocket: WebSocket, topic: str):
        await websocket.accept()
        self.active_connections.setdefault(topic, []).append(websocket)
        logger.debug("feed subscriber connected topic=%s", topic)

    def disconnect(self, websocket: WebSocket, topic: str):
        conns = self.active_connections.get(topic, [])
        if websocket in conns:
            conns.remove(websocket)

    def count(self, topic: str) -> int:
        return len(self.active_connections.get(topic, []))

    async def send_snapshot(self, websocket: WebSocket, topic: str, items: list):
        await websocket.send_text(json.dumps({"topic": topic, "items": items}, default=str))

    async def broadcast(self, topic: str, items: list):
        message = json.dumps({"topic": topic, "items": items}, default=str)
        # copy: disconnect() mutates the list
        for connection in self.active_connections.get(topic, [])[:]:
            try:
                await connection.send_text(message)
            except Exception as e:
                logger.warning("dropping feed subscriber topic=%s: %s", topic, e)
                self.disconnect(connection, topic)


manager = ConnectionManager()


def snapshot(db: Session, topic: str) -> list:
    if topic == "transactions":
        return [transaction_to_dict(t) for t in list_transactions(db, TransactionFilter())]
    if topic == "staff-assignments":
        return all_assignments(db)
    raise ValueError(f"unknown feed topic: {topic}")


def fresh_snapshot(topic: str) -> list:
    db = SessionLocal()
    try:
        return snapshot(db, topic)
    finally:
        db.close()


def subscriber_snapshot(user_id: str, topic: str, roles: Iterable[str]) -> Optional[list]:
    """First list for a new subscriber, or None when the user may not follow feeds.

    Opens and closes its own session; the websocket holds none while subscribed.
    """
    db = SessionLocal()
    try:
        user = db.get(User, user_id) if user_id else None
        if not user or not user.is_active or user.role not in roles:
            return None
        return snapshot(db, topic)
    finally:
        db.close()


async def publish(topic: str):
    """Re-query the full list and push it to every subscriber of ``topic``."""
    if not manager.count(topic):
        return
    items = await run_in_threadpool(fresh_snapshot, topic)
    await manager.broadcast(topic, items)
