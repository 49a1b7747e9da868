import base64
import binascii
import logging
import time
from contextlib import asynccontextmanager
from dataclasses import asdict
from typing import Any

from fastapi import Depends, FastAPI, HTTPException, Request
from pydantic import BaseModel

from hanzicard.application import factory, scheduler
from hanzicard.application.capture_service import CaptureService
from hanzicard.application.config import AppConfig, resolve_config
from hanzicard.application.resolver import LookupResolver
from hanzicard.application.utils.script import unique_chinese_characters
from hanzicard.consts import VERSION
from hanzicard.domain.errors import OcrError
from hanzicard.domain.interfaces import CardRepository
from hanzicard.domain.models import CharacterCard, CharacterInfo, ReviewRating

# Setup logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger("hanzicard.server")


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup
    logger.info(f"hanzicard server v{VERSION} starting up...")
    config = resolve_config()
    client = factory.get_messages_client(config)
    app.state.config = config
    app.state.client = client
    app.state.resolver = factory.get_resolver(config, client)
    app.state.repository = factory.get_repository(config)
    yield
    # Shutdown
    await client.aclose()
    logger.info("hanzicard server shutting down...")


app = FastAPI(
    title="hanzicard server",
    description="Character lookup and review API.",
    version=VERSION,
    lifespan=lifespan,
)

start_time = time.time()


# ---------------------------------------------------------------------------
# Dependencies
# ---------------------------------------------------------------------------


def get_config(request: Request) -> AppConfig:
    return request.app.state.config


def get_resolver(request: Request) -> LookupResolver:
    return request.app.state.resolver


def get_repository(request: Request) -> CardRepository:
    return request.app.state.repository


def get_capture_service(request: Request) -> CaptureService:
    state = request.app.state
    return factory.get_capture_service(
        state.config, state.client, resolver=state.resolver, repository=state.repository
    )


# ---------------------------------------------------------------------------
# Models
# ---------------------------------------------------------------------------


class HealthResponse(BaseModel):
    status: str
    version: str
    uptime_seconds: float


class AnalyzeRequest(BaseModel):
    # Exactly one of these is expected; image wins when both are sent.
    text: str | None = None
    image_base64: str | None = None


class LookupRequest(BaseModel):
    characters: list[str]


class ReviewRequest(BaseModel):
    rating: int


def _info_dict(character: str, info: CharacterInfo) -> dict[str, Any]:
    d = asdict(info)
    d["character"] = character
    d["examples"] = list(info.examples)
    d["components"] = [
        {**asdict(c), "type": c.type.value} for c in info.components
    ]
    return d


def _card_dict(card: CharacterCard) -> dict[str, Any]:
    d = card.to_dict()
    d["accuracy"] = scheduler.accuracy(card)
    return d


def _require_card(repo: CardRepository, character: str) -> CharacterCard:
    card = repo.get_card(character)
    if card is None:
        raise HTTPException(status_code=404, detail=f"No saved card for {character}")
    return card


# ---------------------------------------------------------------------------
# Routes
# ---------------------------------------------------------------------------


@app.get("/health", response_model=HealthResponse)
async def health_check():
    """
    Simple health check to verify server is reachable.
    """
    return HealthResponse(status="ok", version=VERSION, uptime_seconds=time.time() - start_time)


@app.get("/version")
async def get_version():
    return {"version": VERSION}


@app.post("/analyze")
async def analyze(
    req: AnalyzeRequest,
    resolver: LookupResolver = Depends(get_resolver),
    capture: CaptureService = Depends(get_capture_service),
):
    """
    Analyze text directly, or run OCR first when an image is supplied.
    OCR failures are reported as 422 with the user-facing message.
    """
    if req.image_base64:
        try:
            image = base64.b64decode(req.image_base64, validate=True)
        except (binascii.Error, ValueError) as e:
            raise HTTPException(status_code=400, detail="image_base64 is not valid base64") from e

        state = await capture.process_image(image)
        if state.error is not None:
            raise HTTPException(status_code=422, detail=state.error.description)
        return {
            "text": state.ocr_text,
            "words": [asdict(w) for w in state.words],
            "characters": [
                {**_info_dict(a.character, a.info), "is_saved": a.is_saved}
                for a in state.characters
            ],
            "phrases": [
                {"phrase": phrase, **asdict(info)} for phrase, info in state.phrases
            ],
        }

    if req.text is None:
        raise HTTPException(status_code=400, detail="Provide text or image_base64")

    chars = unique_chinese_characters(req.text)
    result = await resolver.analyze(req.text, chars)
    logger.info(f"Analyzed {len(chars)} characters, {len(result.words)} words")
    return {
        "text": req.text,
        "words": [asdict(w) for w in result.words],
        "characters": [_info_dict(c, result.characters[c]) for c in chars],
    }


@app.get("/lookup/{character}")
async def lookup_character(character: str, resolver: LookupResolver = Depends(get_resolver)):
    return _info_dict(character, await resolver.lookup(character))


@app.post("/lookup")
async def lookup_characters(req: LookupRequest, resolver: LookupResolver = Depends(get_resolver)):
    """Batch lookup with at most one remote call."""
    chars = unique_chinese_characters("".join(req.characters))
    results = await resolver.lookup_many(chars)
    return {"characters": [_info_dict(c, results[c]) for c in chars]}


@app.get("/cards/due")
async def due_cards(repo: CardRepository = Depends(get_repository)):
    cards = scheduler.get_due_cards(repo.all_cards())
    return {"count": len(cards), "cards": [_card_dict(c) for c in cards]}


@app.post("/cards/{character}/review")
async def review_card(
    character: str,
    req: ReviewRequest,
    repo: CardRepository = Depends(get_repository),
    config: AppConfig = Depends(get_config),
):
    try:
        rating = ReviewRating(req.rating)
    except ValueError as e:
        raise HTTPException(status_code=400, detail="rating must be 1-4") from e

    card = _require_card(repo, character)
    result = scheduler.apply_review(card, rating, tz=config.tzinfo)
    repo.update_card(card)
    logger.info(f"Reviewed {character}: {rating.label} -> {result.interval}d")
    return {
        "interval": result.interval,
        "ease_factor": result.ease_factor,
        "status": result.status.value,
        "next_review": card.next_review.isoformat(),
    }


@app.get("/cards/{character}/accuracy")
async def card_accuracy(character: str, repo: CardRepository = Depends(get_repository)):
    card = _require_card(repo, character)
    return {
        "character": character,
        "review_count": card.review_count,
        "correct_count": card.correct_count,
        "accuracy": scheduler.accuracy(card),
    }
