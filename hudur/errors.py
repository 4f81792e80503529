from __future__ import annotations


class HudurError(Exception):
    def __init__(self, code: str, message: str):
        super().__init__(message)
        self.code = code
        self.message = message

    def to_payload(self) -> dict[str, dict[str, str]]:
        return {"error": {"code": self.code, "message": self.message}}


class SnapshotError(HudurError):
    def __init__(self, message: str):
        super().__init__("INVALID_SNAPSHOT", message)
