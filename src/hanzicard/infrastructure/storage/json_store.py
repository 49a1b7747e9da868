"""
JSON-file repository for cards and captured photos.

The whole collection lives in one file and is rewritten on every change.
A change is written to disk first and only then applied in memory, so a
failed write leaves both unchanged.
"""

import json
import logging
import threading
from pathlib import Path
from typing import Any

from hanzicard.domain.interfaces import CardRepository
from hanzicard.domain.models import CapturedPhoto, CharacterCard


class JsonCardRepository(CardRepository):
    def __init__(self, path: Path):
        self.path = path
        self.logger = logging.getLogger(__name__)
        self._lock = threading.Lock()
        self._cards: dict[str, CharacterCard] = {}
        self._photos: dict[str, CapturedPhoto] = {}
        self._load()

    def _load(self) -> None:
        if not self.path.exists():
            return
        with open(self.path, encoding="utf-8") as f:
            data = json.load(f)
        self._cards = {
            c["character"]: CharacterCard.from_dict(c) for c in data.get("cards", [])
        }
        self._photos = {p["id"]: CapturedPhoto.from_dict(p) for p in data.get("photos", [])}
        self.logger.debug(
            f"Loaded {len(self._cards)} cards and {len(self._photos)} photos from {self.path}"
        )

    def _write(
        self,
        cards: dict[str, CharacterCard],
        photos: dict[str, CapturedPhoto],
        unlink_photo: str | None = None,
    ) -> None:
        card_dicts: list[dict[str, Any]] = [c.to_dict() for c in cards.values()]
        if unlink_photo is not None:
            for d in card_dicts:
                d["source_photo_ids"] = [p for p in d["source_photo_ids"] if p != unlink_photo]

        self.path.parent.mkdir(parents=True, exist_ok=True)
        payload = {
            "cards": card_dicts,
            "photos": [p.to_dict() for p in photos.values()],
        }
        tmp = self.path.with_suffix(self.path.suffix + ".tmp")
        with open(tmp, "w", encoding="utf-8") as f:
            json.dump(payload, f, ensure_ascii=False, indent=2)
        tmp.replace(self.path)

    def add_card(self, card: CharacterCard) -> None:
        with self._lock:
            if card.character in self._cards:
                raise ValueError(f"Card for {card.character!r} already exists")
            cards = {**self._cards, card.character: card}
            self._write(cards, self._photos)
            self._cards = cards

    def get_card(self, character: str) -> CharacterCard | None:
        return self._cards.get(character)

    def update_card(self, card: CharacterCard) -> None:
        with self._lock:
            if card.character not in self._cards:
                raise KeyError(card.character)
            cards = {**self._cards, card.character: card}
            self._write(cards, self._photos)
            self._cards = cards

    def delete_card(self, character: str) -> bool:
        with self._lock:
            if character not in self._cards:
                return False
            cards = {k: v for k, v in self._cards.items() if k != character}
            self._write(cards, self._photos)
            self._cards = cards
            return True

    def all_cards(self) -> list[CharacterCard]:
        return list(self._cards.values())

    def add_photo(self, photo: CapturedPhoto) -> None:
        with self._lock:
            photos = {**self._photos, photo.id: photo}
            self._write(self._cards, photos)
            self._photos = photos

    def update_photo(self, photo: CapturedPhoto) -> None:
        with self._lock:
            if photo.id not in self._photos:
                raise KeyError(photo.id)
            photos = {**self._photos, photo.id: photo}
            self._write(self._cards, photos)
            self._photos = photos

    def delete_photo(self, photo_id: str) -> bool:
        with self._lock:
            if photo_id not in self._photos:
                return False
            photos = {k: v for k, v in self._photos.items() if k != photo_id}
            self._write(self._cards, photos, unlink_photo=photo_id)
            self._photos = photos
            for card in self._cards.values():
                if photo_id in card.source_photo_ids:
                    card.source_photo_ids.remove(photo_id)
            return True

    def all_photos(self) -> list[CapturedPhoto]:
        return sorted(self._photos.values(), key=lambda p: p.captured_at, reverse=True)
