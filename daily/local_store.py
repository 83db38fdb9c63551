"""Device-scoped game history for anonymous players (last write wins per date)."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import List, Optional

from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from extensions import db

from .models import DeviceGameRecord
from .store import RecordStoreError


@dataclass
class LocalGameRecord:
    date: str
    answer_name: str
    won: bool = False
    guess_count: int = 0
    is_finished: bool = False
    guess_names: List[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "date": self.date,
            "won": self.won,
            "guessCount": self.guess_count,
            "answerName": self.answer_name,
            "isFinished": self.is_finished,
        }


class LocalGameStore:
    def __init__(self, device_id: str) -> None:
        if not device_id:
            raise ValueError("device_id is required")
        self.device_id = device_id

    def get_records(self) -> List[LocalGameRecord]:
        try:
            rows = (
                DeviceGameRecord.query.filter_by(device_id=self.device_id)
                .order_by(DeviceGameRecord.date.asc())
                .all()
            )
        except SQLAlchemyError as exc:
            raise RecordStoreError(f"device history lookup failed: {exc}") from exc
        return [_record_from_row(row) for row in rows]

    def get_record(self, day: str) -> Optional[LocalGameRecord]:
        try:
            row = DeviceGameRecord.query.filter_by(device_id=self.device_id, date=day).first()
        except SQLAlchemyError as exc:
            raise RecordStoreError(f"device record lookup failed: {exc}") from exc
        return _record_from_row(row) if row else None

    def save_record(self, record: LocalGameRecord) -> None:
        """Replace whatever was stored for ``record.date``; no merging."""
        try:
            self._write(record)
        except IntegrityError:
            # A parallel request inserted the same date; overwrite it instead.
            db.session.rollback()
            try:
                self._write(record)
            except SQLAlchemyError as exc:
                db.session.rollback()
                raise RecordStoreError(f"device record save failed: {exc}") from exc
        except SQLAlchemyError as exc:
            db.session.rollback()
            raise RecordStoreError(f"device record save failed: {exc}") from exc

    def clear(self) -> None:
        try:
            DeviceGameRecord.query.filter_by(device_id=self.device_id).delete(synchronize_session=False)
            db.session.commit()
        except SQLAlchemyError as exc:
            db.session.rollback()
            raise RecordStoreError(f"device history clear failed: {exc}") from exc

    def _write(self, record: LocalGameRecord) -> None:
        row = DeviceGameRecord.query.filter_by(device_id=self.device_id, date=record.date).first()
        if row is None:
            row = DeviceGameRecord(device_id=self.device_id, date=record.date)
            db.session.add(row)
        row.won = bool(record.won)
        row.guess_count = int(record.guess_count)
        row.answer_name = record.answer_name
        row.is_finished = bool(record.is_finished)
        row.guess_names = json.dumps(list(record.guess_names))
        db.session.commit()


def _record_from_row(row: DeviceGameRecord) -> LocalGameRecord:
    try:
        names = json.loads(row.guess_names) if row.guess_names else []
    except ValueError:
        names = []
    if not isinstance(names, list):
        names = []
    return LocalGameRecord(
        date=row.date,
        answer_name=row.answer_name,
        won=bool(row.won),
        guess_count=int(row.guess_count or 0),
        is_finished=bool(row.is_finished),
        guess_names=[str(name) for name in names],
    )
