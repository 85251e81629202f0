"""
Client for the Gemini generative language REST API.

Every operation is a blocking HTTPS call through one requests.Session; the UI
runs them in a worker thread. Failures are logged and re-raised as
AIGatewayError with a message that can be shown to the user as is, except for
the calls documented as degrading to an empty result.
"""
import base64
import json
import logging
import time
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional

import requests
from requests import Session

from .config import Config, get_config
from .data_models import CATEGORIES, BuyingGuide, BuyingGuideSource, ChatMessage, Listing, PriceSuggestion
from .errors import AIGatewayError
from .media import load_image_part, save_image_bytes

logger = logging.getLogger("gomarket.ai_gateway")

CHAT_FALLBACK_REPLY = (
    "I'm sorry, I'm having trouble connecting right now. "
    "The seller will get back to you as soon as they can."
)

LISTING_ASSISTANT_INSTRUCTION = """You are a friendly and expert assistant for a marketplace app called GoMarket.
You are helping a user create a new listing.
Your goal is to help them write the best possible title, description, and price to attract buyers.
Keep your responses concise, helpful, and encouraging.
When suggesting changes, be specific. For example, instead of "make the title better", suggest a new title.
You can ask clarifying questions if needed."""

ANITA_INSTRUCTION = """You are Anita, a friendly, cheerful, and super-helpful AI assistant for the GoMarket marketplace app.
Your personality is warm and proactive.
Your goal is to make buying and selling easier and more enjoyable for the user.
NEVER mention you are a large language model. You are Anita.
Keep your responses concise, friendly, and use emojis where appropriate to seem personable.
You have access to the user's current context which will be provided with each message. Use it to give relevant help."""

VIDEO_PROGRESS_MESSAGES = [
    "AI is storyboarding the shots...",
    "Setting up the virtual cameras...",
    "Rendering the first few frames...",
    "Adding special effects and polish...",
    "Finalizing the edit, this can take a minute...",
]

# Everything a malformed or failed reply can raise while we pick it apart
_REPLY_ERRORS = (requests.RequestException, ValueError, KeyError, IndexError, TypeError)

ProgressCallback = Callable[[str], None]


def _object_schema(**properties: Dict[str, Any]) -> Dict[str, Any]:
    return {"type": "OBJECT", "properties": properties, "required": list(properties)}


def anita_prompt(username: str, message: str, listing_title: Optional[str] = None,
                 listing_seller: Optional[str] = None, search_term: Optional[str] = None) -> str:
    """Wrap a user message with what the user is looking at."""
    context = f"(Context for you, Anita: The user is {username}. "
    if listing_title:
        context += f'They are currently viewing the listing "{listing_title}" by seller {listing_seller}. '
    elif search_term:
        context += f'They have searched for "{search_term}". '
    else:
        context += "They are on the main marketplace page. "
    context += f'Give a helpful response to their message.)\n\nUser\'s message: "{message}"'
    return context


class GeminiGateway:
    """Thin wrapper over generateContent / predictLongRunning."""

    def __init__(
        self,
        api_key: str,
        base_url: str = "https://generativelanguage.googleapis.com/v1beta",
        text_model: str = "gemini-2.5-flash",
        image_model: str = "gemini-2.5-flash-image-preview",
        video_model: str = "veo-2.0-generate-001",
        timeout: float = 30.0,
        media_dir: Optional[Path] = None,
        poll_interval: float = 10.0,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.base_url = base_url.rstrip("/")
        self.text_model = text_model
        self.image_model = image_model
        self.video_model = video_model
        self.timeout = timeout
        self.media_dir = Path(media_dir) if media_dir else Path.home() / ".gomarket" / "media"
        self.poll_interval = poll_interval
        self._sleep = sleep
        self._api_key = api_key
        self.session: Session = requests.Session()
        self.session.headers.update({"x-goog-api-key": api_key, "Content-Type": "application/json"})

    @classmethod
    def from_config(cls, config: Config) -> "GeminiGateway":
        return cls(
            api_key=config.api_key(),
            base_url=config.api_url,
            text_model=config.text_model,
            image_model=config.image_model,
            video_model=config.video_model,
            timeout=config.timeout,
            media_dir=config.media_dir,
            poll_interval=config.latency.video_poll,
        )

    # --- helpers ---
    def _post(self, path: str, json_payload: Dict[str, Any]) -> Any:
        url = f"{self.base_url}/{path.lstrip('/')}"
        resp = self.session.post(url, json=json_payload, timeout=self.timeout)
        resp.raise_for_status()
        return resp.json()

    def _get(self, path: str) -> Any:
        url = f"{self.base_url}/{path.lstrip('/')}"
        resp = self.session.get(url, timeout=self.timeout)
        resp.raise_for_status()
        return resp.json()

    def generate(
        self,
        contents: List[Dict[str, Any]],
        model: Optional[str] = None,
        schema: Optional[Dict[str, Any]] = None,
        system_instruction: Optional[str] = None,
        tools: Optional[List[Dict[str, Any]]] = None,
        modalities: Optional[List[str]] = None,
    ) -> Dict[str, Any]:
        payload: Dict[str, Any] = {"contents": contents}
        generation_config: Dict[str, Any] = {}
        if schema is not None:
            generation_config["responseMimeType"] = "application/json"
            generation_config["responseSchema"] = schema
        if modalities:
            generation_config["responseModalities"] = modalities
        if generation_config:
            payload["generationConfig"] = generation_config
        if system_instruction:
            payload["systemInstruction"] = {"parts": [{"text": system_instruction}]}
        if tools:
            payload["tools"] = tools
        model = model or self.text_model
        logger.debug("generateContent model=%s", model)
        return self._post(f"models/{model}:generateContent", payload)

    @staticmethod
    def _user(*parts: Dict[str, Any]) -> List[Dict[str, Any]]:
        return [{"role": "user", "parts": list(parts)}]

    @staticmethod
    def _parts(response: Dict[str, Any]) -> List[Dict[str, Any]]:
        return response["candidates"][0]["content"]["parts"]

    @classmethod
    def _text(cls, response: Dict[str, Any]) -> str:
        text = "".join(p.get("text", "") for p in cls._parts(response))
        if not text.strip():
            raise ValueError("empty reply")
        return text

    @classmethod
    def _json(cls, response: Dict[str, Any]) -> Dict[str, Any]:
        data = json.loads(cls._text(response).strip())
        if not isinstance(data, dict):
            raise ValueError("reply is not a JSON object")
        return data

    # --- operations ---
    def generate_title_from_image(self, image_path: str) -> str:
        try:
            response = self.generate(
                self._user(
                    load_image_part(image_path),
                    {"text": "Analyze this image of an item for a marketplace. Provide a concise, catchy title for it."},
                ),
                schema=_object_schema(title={
                    "type": "STRING",
                    "description": "A short, descriptive, and appealing title for the item. Max 50 characters.",
                }),
            )
            return str(self._json(response)["title"])
        except (OSError,) + _REPLY_ERRORS as e:
            logger.exception("Error generating listing details")
            raise AIGatewayError("Failed to analyze image with AI. Please try again.") from e

    def generate_description(self, title: str) -> str:
        prompt = (
            f'Generate a compelling, friendly, and informative marketplace listing description for an item '
            f'with the title "{title}". Mention its key features, condition, and why someone should buy it. '
            f"Keep it under 150 words. Use paragraphs for readability."
        )
        try:
            return self._text(self.generate(self._user({"text": prompt}))).strip()
        except _REPLY_ERRORS as e:
            logger.exception("Error generating description")
            raise AIGatewayError("Failed to generate description with AI. Please try again.") from e

    def generate_search_suggestions(self, term: str) -> List[str]:
        """Four related search terms; empty on short terms or any failure."""
        if len(term.strip()) < 3:
            return []
        prompt = (
            f'Given the search term "{term}" for an online marketplace, provide 4 related and relevant search '
            "suggestions. Examples could be alternative items, broader categories, or specific brands. Return "
            'the result as a JSON object with a single key "suggestions" which is an array of strings.'
        )
        try:
            response = self.generate(
                self._user({"text": prompt}),
                schema=_object_schema(suggestions={
                    "type": "ARRAY",
                    "items": {"type": "STRING", "description": "A relevant search suggestion."},
                }),
            )
            suggestions = self._json(response).get("suggestions") or []
            return [str(s) for s in suggestions]
        except _REPLY_ERRORS:
            logger.warning("Error generating search suggestions", exc_info=True)
            return []

    def generate_buying_guide(self, term: str) -> Optional[BuyingGuide]:
        """Short web-grounded buying guide; None on short terms or any failure."""
        if len(term.strip()) < 3:
            return None
        prompt = (
            f'You are an expert marketplace assistant. A user is searching for "{term}". '
            "Generate a short, helpful buying guide for them. "
            "Include 2-3 key things to look for in a second-hand item. "
            "Keep the tone friendly and the text concise (under 100 words)."
        )
        try:
            response = self.generate(self._user({"text": prompt}), tools=[{"google_search": {}}])
            guide = "".join(p.get("text", "") for p in self._parts(response)).strip()
            chunks = (response["candidates"][0].get("groundingMetadata") or {}).get("groundingChunks") or []
        except _REPLY_ERRORS:
            logger.warning("Error generating buying guide", exc_info=True)
            return None
        if not guide:
            return None

        sources: Dict[str, BuyingGuideSource] = {}
        for chunk in chunks:
            web = chunk.get("web") if isinstance(chunk, dict) else None
            if web and web.get("uri"):
                # later duplicates win, order of first appearance is kept
                sources[web["uri"]] = BuyingGuideSource(uri=web["uri"], title=web.get("title") or "Online Source")
        return BuyingGuide(guide=guide, sources=list(sources.values()))

    def suggest_price(self, title: str, description: str) -> PriceSuggestion:
        prompt = (
            "Based on the following item details for a listing on a second-hand online marketplace, suggest a "
            "fair price in USD. Also provide a brief, one-sentence justification for your suggestion.\n"
            f'- Title: "{title}"\n'
            f'- Description: "{description}"\n'
            "Consider factors like the item type, potential brand, and condition as inferred from the description."
        )
        try:
            response = self.generate(
                self._user({"text": prompt}),
                schema=_object_schema(
                    price={"type": "NUMBER",
                           "description": "A fair market price for the item in USD, without the currency symbol."},
                    justification={"type": "STRING",
                                   "description": "A short, one-sentence explanation for the suggested price."},
                ),
            )
            data = self._json(response)
            return PriceSuggestion(price=float(data["price"]), justification=str(data["justification"]))
        except _REPLY_ERRORS as e:
            logger.exception("Error suggesting price")
            raise AIGatewayError("Failed to suggest a price with AI. Please set it manually.") from e

    def suggest_category(self, title: str, description: str) -> str:
        prompt = (
            "Based on the following item details, select the most suitable category from the provided list.\n"
            f'- Title: "{title}"\n'
            f'- Description: "{description}"\n'
            f"Available categories: {', '.join(CATEGORIES)}."
        )
        try:
            response = self.generate(
                self._user({"text": prompt}),
                schema=_object_schema(category={
                    "type": "STRING",
                    "description": "The single most appropriate category for the item from the provided list.",
                }),
            )
            category = self._json(response).get("category")
        except _REPLY_ERRORS as e:
            logger.exception("Error suggesting category")
            raise AIGatewayError("Failed to suggest a category with AI. Please select one manually.") from e
        if category not in CATEGORIES:
            logger.warning('AI suggested an invalid category: "%s". Falling back to "Other".', category)
            return "Other"
        return category

    def generate_search_term_from_image(self, image_path: str) -> str:
        try:
            response = self.generate(
                self._user(
                    load_image_part(image_path),
                    {"text": "Analyze the image to identify the main object. Provide a concise and effective "
                             "search term for finding this item on an online marketplace. The term should be "
                             "suitable for a search bar."},
                ),
                schema=_object_schema(searchTerm={
                    "type": "STRING",
                    "description": "A concise search term for the item in the image.",
                }),
            )
            term = self._json(response).get("searchTerm")
            if not term:
                raise ValueError("AI did not return a valid search term.")
            return str(term)
        except (OSError,) + _REPLY_ERRORS as e:
            logger.exception("Error generating search term from image")
            raise AIGatewayError("Failed to analyze image with AI. Please try another image.") from e

    def edit_image(self, image_path: str, prompt: str) -> Path:
        """Apply a text instruction to an image; the result is saved under media_dir."""
        try:
            response = self.generate(
                self._user(load_image_part(image_path), {"text": prompt}),
                model=self.image_model,
                modalities=["IMAGE", "TEXT"],
            )
            for part in self._parts(response):
                inline = part.get("inlineData") or part.get("inline_data")
                if inline:
                    data = base64.b64decode(inline["data"])
                    mime = inline.get("mimeType") or inline.get("mime_type") or "image/png"
                    return save_image_bytes(data, mime, self.media_dir, f"edited_{int(time.time() * 1000)}")
            raise ValueError("AI did not return an edited image.")
        except (OSError,) + _REPLY_ERRORS as e:
            logger.exception("Error editing image")
            raise AIGatewayError("Failed to edit image with AI. Please try a different prompt or image.") from e

    def generate_promotional_video(
        self, title: str, image_path: str, on_progress: Optional[ProgressCallback] = None
    ) -> Path:
        """Start a video job, poll it until done and download the result."""
        progress = on_progress or (lambda message: None)
        try:
            progress("Preparing your assets for the AI director...")
            image = load_image_part(image_path)["inline_data"]

            progress("Sending scene details to the video studio...")
            prompt = (
                "Create a short, clean, professional promotional video for a marketplace listing. "
                f'The item is: "{title}". '
                "Animate the provided image subtly. Add gentle, abstract background motion. "
                "The tone should be appealing and high-quality."
            )
            operation = self._post(
                f"models/{self.video_model}:predictLongRunning",
                {
                    "instances": [{
                        "prompt": prompt,
                        "image": {"bytesBase64Encoded": image["data"], "mimeType": image["mime_type"]},
                    }],
                    "parameters": {"sampleCount": 1},
                },
            )

            index = 0
            progress(VIDEO_PROGRESS_MESSAGES[index])
            while not operation.get("done"):
                self._sleep(self.poll_interval)
                index = (index + 1) % len(VIDEO_PROGRESS_MESSAGES)
                progress(VIDEO_PROGRESS_MESSAGES[index])
                operation = self._get(operation["name"])

            if operation.get("error"):
                raise ValueError(f"video operation failed: {operation['error']}")

            progress("Video generation complete! Retrieving the final cut...")
            samples = (
                operation.get("response", {})
                .get("generateVideoResponse", {})
                .get("generatedSamples")
                or []
            )
            uri = samples[0].get("video", {}).get("uri") if samples else None
            if not uri:
                raise ValueError("Video generation succeeded, but no download link was found.")
            return self._download(uri)
        except (OSError,) + _REPLY_ERRORS as e:
            logger.exception("Error generating promotional video")
            text = str(e)
            if "RESOURCE_EXHAUSTED" in text or "429" in text:
                raise AIGatewayError(
                    "Video generation is currently unavailable due to high demand. Please try again later."
                ) from e
            raise AIGatewayError("Failed to generate video with AI. Please try again.") from e

    def _download(self, uri: str) -> Path:
        self.media_dir.mkdir(parents=True, exist_ok=True)
        target = self.media_dir / f"promo_{int(time.time() * 1000)}.mp4"
        resp = self.session.get(uri, params={"key": self._api_key}, timeout=self.timeout, stream=True)
        resp.raise_for_status()
        with open(target, "wb") as f:
            for chunk in resp.iter_content(chunk_size=64 * 1024):
                if chunk:
                    f.write(chunk)
        logger.info("saved promotional video to %s", target)
        return target

    def generate_chat_reply(self, chat_history: List[ChatMessage], listing: Listing) -> str:
        """Holding reply on behalf of an absent seller. Never raises."""
        last = chat_history[-1].text if chat_history and chat_history[-1].text else "No message provided."
        prompt = (
            "You are a friendly AI assistant helping a seller on the GoMarket marketplace. "
            "The seller is currently unavailable to respond.\n"
            "The buyer is interested in this item:\n"
            f'- Title: "{listing.title}"\n'
            f"- Price: {listing.price}\n"
            f'- Description: "{listing.description}"\n\n'
            f'The buyer\'s latest message is: "{last}"\n\n'
            "Your task is to provide a helpful, polite, and non-committal response. Acknowledge the buyer's "
            "message and inform them that the seller will get back to you soon. Do not make up answers or "
            "agree to any deals. Keep it concise."
        )
        try:
            return self._text(self.generate(self._user({"text": prompt}))).strip()
        except _REPLY_ERRORS:
            logger.warning("Error generating AI chat response", exc_info=True)
            return CHAT_FALLBACK_REPLY

    def create_listing_assistant_session(self) -> "ChatSession":
        return ChatSession(self, LISTING_ASSISTANT_INSTRUCTION)

    def create_anita_session(self) -> "ChatSession":
        return ChatSession(self, ANITA_INSTRUCTION)


class ChatSession:
    """Multi-turn conversation; history is resent with every message."""

    def __init__(self, gateway: GeminiGateway, system_instruction: str):
        self.gateway = gateway
        self.system_instruction = system_instruction
        self.history: List[Dict[str, Any]] = []

    def send_message(self, message: str) -> str:
        turn = {"role": "user", "parts": [{"text": message}]}
        try:
            response = self.gateway.generate(
                self.history + [turn], system_instruction=self.system_instruction
            )
            reply = self.gateway._text(response)
        except _REPLY_ERRORS as e:
            logger.exception("Chat session request failed")
            raise AIGatewayError("Sorry, I couldn't respond right now.") from e
        self.history.append(turn)
        self.history.append({"role": "model", "parts": [{"text": reply}]})
        return reply


class _UnconfiguredGateway:
    """Stands in when no API key is configured; every call fails clearly."""

    def __getattr__(self, name):
        def _fail(*args, **kwargs):
            raise AIGatewayError(
                "AI features are unavailable: GEMINI_API_KEY is not set. "
                "Add it to .env or run `gomarket --set-api-key`."
            )
        return _fail


_gateway = None


def get_gateway():
    """Shared gateway built from the current configuration."""
    global _gateway
    if _gateway is None:
        config = get_config()
        if config.api_key():
            _gateway = GeminiGateway.from_config(config)
        else:
            logger.warning("GEMINI_API_KEY is not set, AI features are disabled")
            _gateway = _UnconfiguredGateway()
    return _gateway


def reset_gateway() -> None:
    global _gateway
    _gateway = None
