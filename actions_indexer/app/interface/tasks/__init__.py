from __future__ import annotations

from collections.abc import Awaitable, Callable

from .transaction_actions_task import index_transaction_actions_task as domain__index_transaction_actions_task

TaskFn = Callable[..., Awaitable[None]]

TASKS: dict[str, TaskFn] = {
    "domain__index_transaction_actions_task": domain__index_transaction_actions_task,
}
