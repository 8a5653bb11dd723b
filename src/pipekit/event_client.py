# Copyright 2025 Ben Mensi
# SPDX-License-Identifier: Apache-2.0

"""
Run history for pipes.

Each launch is one run: a pipe.started record, then exactly one
pipe.completed or pipe.failed record carrying the same correlation id.
Records are appended as JSON lines to <workspace>/events.jsonl.
"""

import json
import uuid
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

EVENTS_FILE = "events.jsonl"

STARTED = "pipe.started"
COMPLETED = "pipe.completed"
FAILED = "pipe.failed"


class PipeRun:
    """Handle for one launch; writes its closing record."""

    def __init__(self, client: "EventClient", pipe: str, correlation_id: str):
        self.client = client
        self.pipe = pipe
        self.correlation_id = correlation_id

    def completed(self, exit_code: int) -> Dict[str, Any]:
        return self.client.append(
            COMPLETED, self.correlation_id, "succeeded", {"pipe": self.pipe, "exit_code": exit_code}
        )

    def failed(
        self,
        error_message: str,
        exit_code: Optional[int] = None,
        cancelled: bool = False,
    ) -> Dict[str, Any]:
        return self.client.append(
            FAILED,
            self.correlation_id,
            "cancelled" if cancelled else "failed",
            {"pipe": self.pipe, "exit_code": exit_code},
            error_message=error_message,
        )


class EventClient:
    """Append-only JSONL log of pipe runs."""

    def __init__(self, log_path: Union[str, Path]):
        self.log_path = Path(log_path)
        self.log_path.parent.mkdir(parents=True, exist_ok=True)

    @classmethod
    def for_workspace(cls, root: Union[str, Path]) -> "EventClient":
        return cls(Path(root) / EVENTS_FILE)

    def start_run(self, pipe: str, entry_file: Union[str, Path], runtime: str) -> PipeRun:
        """Record that a pipe is about to be spawned and return its run handle."""
        run = PipeRun(self, pipe, str(uuid.uuid4()))
        self.append(
            STARTED,
            run.correlation_id,
            "running",
            {"pipe": pipe, "entry_file": str(entry_file), "runtime": runtime},
        )
        return run

    def append(
        self,
        event_type: str,
        correlation_id: str,
        status: str,
        payload: Optional[Dict[str, Any]] = None,
        error_message: Optional[str] = None,
    ) -> Dict[str, Any]:
        record = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "event_type": event_type,
            "correlation_id": correlation_id,
            "status": status,
        }
        if payload:
            record["payload"] = payload
        if error_message:
            record["error_message"] = error_message

        with self.log_path.open("a", encoding="utf-8") as f:
            f.write(json.dumps(record) + "\n")
        return record

    def read_events(self, pipe: Optional[str] = None) -> List[Dict[str, Any]]:
        """Logged records, oldest first, optionally only those of one pipe."""
        if not self.log_path.exists():
            return []
        with self.log_path.open(encoding="utf-8") as f:
            records = [json.loads(line) for line in f if line.strip()]
        if pipe is None:
            return records
        return [r for r in records if r.get("payload", {}).get("pipe") == pipe]

    def history(self, pipe: str) -> List[Dict[str, Any]]:
        """One summary per run of pipe, oldest first.

        A run with no closing record (the process was killed) keeps status
        "running" and no exit code.
        """
        runs: Dict[str, Dict[str, Any]] = {}
        for record in self.read_events(pipe):
            run = runs.setdefault(
                record["correlation_id"],
                {"started": record["timestamp"], "status": "running", "exit_code": None},
            )
            if record["event_type"] != STARTED:
                run["status"] = record["status"]
                run["exit_code"] = record.get("payload", {}).get("exit_code")
                run["error_message"] = record.get("error_message")
        return list(runs.values())
