from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Sequence

from actions_indexer.app.domain.models import RawLog


@dataclass(frozen=True)
class LogFilterRule:
    """
    Allow-list rule: topic0 must be one of `signatures`; when `address` is set,
    the log must also be emitted by that contract.
    """

    signatures: frozenset[str]
    address: str | None = None

    def matches(self, log: RawLog) -> bool:
        if sanitize_first_topic(log.first_topic) not in self.signatures:
            return False
        if self.address is None:
            return True
        return (log.address_hash or "").lower() == self.address.lower()


def sanitize_first_topic(first_topic: str | None) -> str:
    # missing topic0 never matches a signature
    if first_topic is None:
        return ""
    return first_topic.lower()


def filter_logs(logs: Iterable[RawLog], rules: Sequence[LogFilterRule]) -> list[RawLog]:
    return [log for log in logs if any(rule.matches(log) for rule in rules)]


def group_logs_by_transaction(logs: Iterable[RawLog]) -> dict[str, list[RawLog]]:
    """
    Group logs by transaction hash.

    Transactions appear in order of their first log; each inner list keeps the
    relative order of the input.
    """
    grouped: dict[str, list[RawLog]] = {}
    for log in logs:
        grouped.setdefault(log.transaction_hash, []).append(log)
    return grouped
