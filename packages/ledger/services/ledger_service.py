"""
Ledger store mutations.

Every operation is one ``ledger_transaction()``: lock the external user row(s)
with ``SELECT ... FOR UPDATE``, decode the ledger array, apply a pure entry
transform, write the whole array back, commit. Operations that touch two rows
lock them in ascending user id order.
"""

from typing import Optional, Union

from common.core.otel_axiom_exporter import trace_span, get_logger
from common.core.results import ErrorCode, Failure, Success, fail
from common.db.scoped import ledger_transaction
from packages.ledger.entries import (
    create_entry,
    deactivate_without_reset,
    find_entry_index,
    has_deployed_entry,
    parse_entry,
    redeploy_without_reset,
    transfer_without_reset,
)
from packages.ledger.models.domain.ledger_entry import (
    LedgerEntryStatus,
    LedgerGrant,
    LedgerGroup,
    QuotaLedgerEntry,
)
from packages.ledger.models.domain.ledger_user import LedgerPlacement, LedgerUser
from packages.ledger.repositories.ledger_user_repository import LedgerUserRepository

logger = get_logger(__name__)

LedgerResult = Union[LedgerPlacement, Failure]


class LedgerService:
    def __init__(self):
        self.user_repo = LedgerUserRepository()

    @trace_span
    async def resolve_user(self, identifier: Optional[str]) -> Optional[LedgerUser]:
        return await self.user_repo.find_by_identifier(identifier)

    @trace_span
    async def get_entry(
        self, user_id: int, subscription_id: str
    ) -> Optional[QuotaLedgerEntry]:
        user = await self.user_repo.get(user_id)
        if not user:
            return None
        index = find_entry_index(user.entries, subscription_id)
        return parse_entry(user.entries[index]) if index >= 0 else None

    @trace_span
    async def deploy_entry(
        self,
        identifier: str,
        grant: LedgerGrant,
        now: int,
        adopt_existing: bool = False,
    ) -> LedgerResult:
        """
        Place a subscription's entry on an external user.

        A missing entry is created with fresh quota. An existing entry is only
        redeployed from ``deactivated``; its quota is kept. With
        ``adopt_existing`` an entry already live on this user is accepted as is,
        which lets a deploy whose platform write failed be repeated.
        """
        async with ledger_transaction():
            user = await self.user_repo.find_by_identifier(identifier, for_update=True)
            if not user:
                return fail(ErrorCode.LEDGER_USER_NOT_FOUND)

            entries = list(user.entries)
            index = find_entry_index(entries, grant.subscription_id)
            if index < 0:
                entry = create_entry(grant, owner=user.id, now=now)
                entries.append(entry.to_json_dict())
                logger.info(
                    f"Creating ledger entry {grant.subscription_id} for ledger user {user.id}",
                    extra={"subscription_id": grant.subscription_id, "ledger_user_id": user.id},
                )
            else:
                current = parse_entry(entries[index])
                if current is None:
                    return fail(ErrorCode.LEDGER_ENTRY_INVALID)
                if current.status != LedgerEntryStatus.DEACTIVATED:
                    if (
                        adopt_existing
                        and current.status == LedgerEntryStatus.DEPLOYED
                        and current.owner == user.id
                    ):
                        logger.warning(
                            f"Adopting live ledger entry {grant.subscription_id} on ledger user {user.id}",
                            extra={"subscription_id": grant.subscription_id, "ledger_user_id": user.id},
                        )
                        return LedgerPlacement(
                            ledger_user_id=user.id,
                            ledger_username=user.username,
                            entry=current,
                        )
                    return fail(ErrorCode.ALREADY_PRESENT_NOT_DEACTIVATED)
                entry = redeploy_without_reset(
                    current, now, user.id, grant.end_at, grant.auto_renew
                )
                entries[index] = entry.to_json_dict()

            await self.user_repo.save_ledger(
                user.id, entries, group=LedgerGroup.SUBSCRIPTION
            )
            return LedgerPlacement(
                ledger_user_id=user.id, ledger_username=user.username, entry=entry
            )

    @trace_span
    async def deactivate_entry(self, user_id: int, subscription_id: str) -> LedgerResult:
        """Mark an entry deactivated. The user's group reverts when nothing stays deployed."""
        async with ledger_transaction():
            user = await self.user_repo.get_for_update(user_id)
            if not user:
                return fail(ErrorCode.LEDGER_USER_NOT_FOUND)

            entries = list(user.entries)
            index = find_entry_index(entries, subscription_id)
            if index < 0:
                return fail(ErrorCode.SUBSCRIPTION_NOT_FOUND)
            current = parse_entry(entries[index])
            if current is None:
                return fail(ErrorCode.LEDGER_ENTRY_INVALID)

            entry = deactivate_without_reset(current)
            entries[index] = entry.to_json_dict()
            group = None if has_deployed_entry(entries) else LedgerGroup.DEFAULT
            await self.user_repo.save_ledger(user.id, entries, group=group)
            return LedgerPlacement(
                ledger_user_id=user.id, ledger_username=user.username, entry=entry
            )

    @trace_span
    async def transfer_entry(
        self,
        from_user_id: int,
        to_identifier: str,
        subscription_id: str,
        now: int,
        end_at: int,
        auto_renew: bool,
    ) -> LedgerResult:
        """Move an entry to another external user, quota unchanged."""
        target = await self.user_repo.find_by_identifier(to_identifier)
        if not target:
            return fail(ErrorCode.TO_USER_NOT_FOUND)

        async with ledger_transaction():
            locked = {}
            for user_id in sorted({from_user_id, target.id}):
                locked[user_id] = await self.user_repo.get_for_update(user_id)

            source = locked.get(from_user_id)
            destination = locked.get(target.id)
            if not source:
                return fail(ErrorCode.FROM_USER_NOT_FOUND)
            if not destination:
                return fail(ErrorCode.TO_USER_NOT_FOUND)

            source_entries = list(source.entries)
            index = find_entry_index(source_entries, subscription_id)
            if index < 0:
                return fail(ErrorCode.SUBSCRIPTION_NOT_FOUND_ON_SOURCE)

            # Decoded separately so a same-user transfer sees its own entry
            destination_entries = list(destination.entries)
            if find_entry_index(destination_entries, subscription_id) >= 0:
                return fail(ErrorCode.SUBSCRIPTION_ALREADY_EXISTS_ON_TARGET)

            current = parse_entry(source_entries[index])
            if current is None:
                return fail(ErrorCode.LEDGER_ENTRY_INVALID)

            moved = transfer_without_reset(
                current, now, destination.id, end_at, auto_renew
            )
            del source_entries[index]
            destination_entries.append(moved.to_json_dict())

            source_group = (
                LedgerGroup.SUBSCRIPTION
                if has_deployed_entry(source_entries)
                else LedgerGroup.DEFAULT
            )
            await self.user_repo.save_ledger(
                source.id, source_entries, group=source_group
            )
            await self.user_repo.save_ledger(
                destination.id, destination_entries, group=LedgerGroup.SUBSCRIPTION
            )
            logger.info(
                f"Transferred ledger entry {subscription_id} from {source.id} to {destination.id}",
                extra={
                    "subscription_id": subscription_id,
                    "from_ledger_user_id": source.id,
                    "to_ledger_user_id": destination.id,
                },
            )
            return LedgerPlacement(
                ledger_user_id=destination.id,
                ledger_username=destination.username,
                entry=moved,
            )

    @trace_span
    async def remove_entry(
        self, user_id: int, subscription_id: str
    ) -> Union[Success, Failure]:
        """Drop an entry from the user's ledger (expiry retraction)."""
        async with ledger_transaction():
            user = await self.user_repo.get_for_update(user_id)
            if not user:
                return fail(ErrorCode.LEDGER_USER_NOT_FOUND)

            entries = list(user.entries)
            index = find_entry_index(entries, subscription_id)
            if index < 0:
                return fail(ErrorCode.SUBSCRIPTION_NOT_FOUND)

            del entries[index]
            group = None if has_deployed_entry(entries) else LedgerGroup.DEFAULT
            await self.user_repo.save_ledger(user.id, entries, group=group)
            return Success()
