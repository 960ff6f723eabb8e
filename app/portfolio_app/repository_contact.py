from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import replace
from typing import Any

from portfolio_app.core.defaults import CONTACT_ACK_MESSAGE, CONTACTS_STORAGE_KEY
from portfolio_app.core.models import ContactMessage, ContactReceipt, ContactStatus
from portfolio_app.infrastructure.latency import OperationKind

LOGGER = logging.getLogger(__name__)


class RepositoryContactMixin:
    def _load_contacts(self) -> list[ContactMessage]:
        documents = self.store.load(CONTACTS_STORAGE_KEY, [])
        return self._decode_records(documents, ContactMessage.from_document, "contact")

    def _persist_contacts(self) -> None:
        self._persist(CONTACTS_STORAGE_KEY, lambda: [contact.to_document() for contact in self._contacts])

    async def submit_contact(self, data: Mapping[str, Any]) -> ContactReceipt:
        payload = dict(data or {})
        return await self._call(OperationKind.CONTACT, lambda: self._submit_contact_now(payload))

    def _submit_contact_now(self, payload: dict[str, Any]) -> ContactReceipt:
        with self._locks[CONTACTS_STORAGE_KEY]:
            contact = ContactMessage(
                id=self._new_id("c"),
                name=str(payload.get("name") or ""),
                email=str(payload.get("email") or ""),
                message=str(payload.get("message") or ""),
                created_at=self._now(),
                read=False,
                status=ContactStatus.NEW,
            )
            self._contacts.insert(0, contact)
            self._persist_contacts()
        LOGGER.info(
            "Received contact message id=%s.",
            contact.id,
            extra={"event": "contact_received", "contact_id": contact.id},
        )
        return ContactReceipt(success=True, message=CONTACT_ACK_MESSAGE, contact_id=contact.id)

    async def fetch_all_contacts(self) -> list[ContactMessage]:
        return await self._call(OperationKind.FETCH, lambda: self._newest_first(self._contacts))

    async def mark_contact_read(self, contact_id: str) -> bool:
        return await self._call(OperationKind.STATUS, lambda: self._mark_contact_read_now(contact_id))

    def _mark_contact_read_now(self, contact_id: str) -> bool:
        def _transition(contact: ContactMessage) -> ContactMessage:
            # replied is terminal; reading it again only sets the flag
            status = contact.status if contact.status is ContactStatus.REPLIED else ContactStatus.READ
            return replace(contact, read=True, status=status)

        return self._update_contact(contact_id, _transition, event="contact_marked_read")

    async def mark_contact_replied(self, contact_id: str) -> bool:
        return await self._call(OperationKind.STATUS, lambda: self._mark_contact_replied_now(contact_id))

    def _mark_contact_replied_now(self, contact_id: str) -> bool:
        return self._update_contact(
            contact_id,
            lambda contact: replace(contact, status=ContactStatus.REPLIED),
            event="contact_marked_replied",
        )

    def _update_contact(self, contact_id: str, transition, *, event: str) -> bool:
        with self._locks[CONTACTS_STORAGE_KEY]:
            index = self._index_of(self._contacts, str(contact_id or ""))
            if index is None:
                LOGGER.debug("Contact update skipped; no contact with id=%s.", contact_id)
                return False
            self._contacts[index] = transition(self._contacts[index])
            self._persist_contacts()
        LOGGER.info("Updated contact id=%s.", contact_id, extra={"event": event, "contact_id": contact_id})
        return True

    async def delete_contact(self, contact_id: str) -> bool:
        return await self._call(OperationKind.DELETE, lambda: self._delete_contact_now(contact_id))

    def _delete_contact_now(self, contact_id: str) -> bool:
        with self._locks[CONTACTS_STORAGE_KEY]:
            index = self._index_of(self._contacts, str(contact_id or ""))
            if index is None:
                LOGGER.debug("Contact delete skipped; no contact with id=%s.", contact_id)
                return False
            del self._contacts[index]
            self._persist_contacts()
        LOGGER.info(
            "Deleted contact id=%s.",
            contact_id,
            extra={"event": "contact_deleted", "contact_id": contact_id},
        )
        return True

    def unread_count(self) -> int:
        return sum(1 for contact in self._contacts if not contact.read)
