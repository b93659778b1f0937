"""Single overwritten status line, mirrored to the run log and status.json."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Callable

from playsort.storage import RunContext, append_log, write_status


class StatusSink:
    def __init__(
        self,
        ctx: RunContext | None = None,
        *,
        url: str = "",
        echo: Callable[[str], None] | None = None,
    ) -> None:
        self.ctx = ctx
        self.url = url
        self.echo = echo
        self.current = ""
        self.state = "idle"
        self.history: list[str] = []

    def post(self, message: str, *, state: str | None = None, moves: int | None = None) -> None:
        self.current = message
        if state:
            self.state = state
        self.history.append(message)
        if self.echo is not None:
            self.echo(message)
        if self.ctx is None:
            return
        stamp = datetime.now(timezone.utc).strftime("%H:%M:%S")
        first, *rest = message.splitlines() or [""]
        append_log(
            self.ctx.sort_log,
            f"{stamp} [{self.state}] {first}",
            *(f"{stamp} [{self.state}]   {line}" for line in rest),
        )
        write_status(
            run_id=self.ctx.run_id,
            run_dir=self.ctx.run_dir,
            url=self.url,
            state=self.state,
            progress=message,
            moves=moves,
        )
