"""
Image generation with Stability AI and hosting on Cloudinary.
"""
import hashlib
import logging
import re
import time
from dataclasses import dataclass
from typing import Optional

import aiohttp

from vocavision.config import get_settings
from vocavision.models import VisualType
from vocavision.resilience import breakers
from vocavision.webapp.errors import AppError

logger = logging.getLogger(__name__)

STABILITY_API_URL = "https://api.stability.ai/v1/generation"
STABILITY_ENGINE = "stable-diffusion-xl-1024-v1-0"
CLOUDINARY_FOLDER = "vocavision/visuals"

_NO_TEXT = ("text, words, letters, alphabet, typography, writing, captions, labels, watermark, "
            "signature")

VISUAL_STYLES = {
    VisualType.CONCEPT: {
        "style": "cute cartoon illustration, Pixar style, bright vibrant colors, friendly, educational",
        "negative_prompt": _NO_TEXT + ", blurry, numbers, characters, font, handwriting, title, subtitle, "
                                      "realistic, photograph, dark, scary",
    },
    VisualType.MNEMONIC: {
        "style": "cartoon illustration, cute, memorable, colorful",
        "negative_prompt": _NO_TEXT + ", realistic, photograph, numbers, characters, font, handwriting, "
                                      "title, subtitle",
    },
    VisualType.RHYME: {
        "style": "playful cartoon, humorous, bright colors",
        "negative_prompt": _NO_TEXT + ", realistic, photograph, numbers, characters, font, handwriting, "
                                      "title, subtitle",
    },
}


def concept_prompt(definition: str, word: str) -> str:
    return (
        f'A 1:1 square cute cartoon illustration showing the meaning of "{word}" '
        f'which means "{definition or word}".\n'
        "Style: Pixar-like 3D cartoon, bright vibrant colors, friendly character design, "
        "simple clean composition, educational and memorable.\n"
        "The image should help language learners instantly understand and remember the word meaning "
        "through clear visual storytelling.\n"
        "CRITICAL: Absolutely NO text, NO letters, NO words, NO writing anywhere in the image. "
        "Pure visual illustration only."
    )


def mnemonic_prompt(mnemonic: str, word: str) -> str:
    # too short to picture, draw the word itself
    if not mnemonic or mnemonic == word or len(mnemonic) < 5:
        return (
            f'A 1:1 square cartoon illustration showing the action or concept of "{word}" '
            "in a funny, exaggerated, memorable way. The image should help students remember this "
            "vocabulary word. Style: cute cartoon, bright colors, humorous, memorable, dynamic poses "
            "or expressions. CRITICAL: Absolutely NO text, NO letters, NO words in the image."
        )
    return (
        f'A 1:1 square cartoon illustration visualizing this memory technique: "{mnemonic}". '
        f'This helps remember the English word "{word}". Style: cute cartoon, memorable, colorful, '
        "exaggerated for humor. CRITICAL: Absolutely NO text, NO letters, NO words in the image."
    )


def rhyme_prompt(definition: str, word: str) -> str:
    return (
        f'A 1:1 square humorous cartoon illustration showing: "{definition or word}". '
        "Style: playful cartoon, bright colors. CRITICAL: NO text in image."
    )


def public_id_for(word: str, visual_type: VisualType, now_ms: int) -> str:
    return f"{re.sub(r'[^a-z0-9]', '-', word.lower())}-{visual_type.value.lower()}-{now_ms}"


def cloudinary_signature(params: dict, api_secret: str) -> str:
    """SHA-1 over the sorted ``key=value`` pairs followed by the secret."""
    to_sign = "&".join(f"{k}={params[k]}" for k in sorted(params))
    return hashlib.sha1(f"{to_sign}{api_secret}".encode("utf-8")).hexdigest()


@dataclass
class ImageResult:
    image_url: str
    public_id: str
    seed: Optional[int]


class StabilityClient:
    def __init__(self, api_key: str, engine: str = STABILITY_ENGINE):
        self.api_key = api_key
        self.url = f"{STABILITY_API_URL}/{engine}/text-to-image"

    async def generate(self, prompt: str, visual_type: VisualType):
        """Returns (base64 png, seed) or None when the response has no artifact."""
        if not self.api_key:
            raise AppError("STABILITY_API_KEY not configured", 503)

        body = {
            "text_prompts": [
                {"text": prompt, "weight": 1},
                {"text": VISUAL_STYLES[visual_type]["negative_prompt"], "weight": -1},
            ],
            "cfg_scale": 7,
            "height": 1024,
            "width": 1024,
            "steps": 30,
            "samples": 1,
            "sampler": "K_DPM_2_ANCESTRAL",
        }
        headers = {
            "Content-Type": "application/json",
            "Accept": "application/json",
            "Authorization": f"Bearer {self.api_key}",
        }
        return await breakers.call("stability", self._post, body, headers)

    async def _post(self, body, headers):
        logger.info("Stability request to %s", self.url)
        async with aiohttp.ClientSession() as http_session:
            async with http_session.post(self.url, json=body, headers=headers) as response:
                if response.status != 200:
                    text = await response.text()
                    raise AppError(f"Stability AI error: {response.status} - {text}", 502)
                data = await response.json()

        artifacts = data.get("artifacts") or []
        if not artifacts:
            logger.error("Stability response has no artifacts")
            return None
        return artifacts[0]["base64"], artifacts[0].get("seed")


class CloudinaryClient:
    def __init__(self, cloud_name: str, api_key: str, api_secret: str, folder: str = CLOUDINARY_FOLDER,
                 clock=time.time):
        self.cloud_name = cloud_name
        self.api_key = api_key
        self.api_secret = api_secret
        self.folder = folder
        self._clock = clock

    @property
    def upload_url(self) -> str:
        return f"https://api.cloudinary.com/v1_1/{self.cloud_name}/image/upload"

    def signed_form(self, base64_data: str, word: str, visual_type: VisualType) -> dict:
        now = self._clock()
        params = {
            "folder": self.folder,
            "public_id": public_id_for(word, visual_type, int(now * 1000)),
            "timestamp": str(int(now)),
        }
        return {
            "file": f"data:image/png;base64,{base64_data}",
            "api_key": self.api_key,
            "signature": cloudinary_signature(params, self.api_secret),
            **params,
        }

    async def upload(self, base64_data: str, word: str, visual_type: VisualType):
        """Returns (secure_url, public_id)."""
        if not (self.cloud_name and self.api_key and self.api_secret):
            raise AppError("Cloudinary not configured", 503)
        form = self.signed_form(base64_data, word, visual_type)
        return await breakers.call("cloudinary", self._post, form)

    async def _post(self, form):
        logger.info("Cloudinary upload %s", form["public_id"])
        async with aiohttp.ClientSession() as http_session:
            async with http_session.post(self.upload_url, data=form) as response:
                if response.status != 200:
                    text = await response.text()
                    raise AppError(f"Cloudinary upload error: {response.status} - {text}", 502)
                data = await response.json()
        return data["secure_url"], data["public_id"]


class ImagePipeline:
    def __init__(self, stability: StabilityClient, cloudinary: CloudinaryClient):
        self.stability = stability
        self.cloudinary = cloudinary

    @staticmethod
    def build_prompt(visual_type: VisualType, word: str, definition: str, mnemonic: str = "") -> str:
        if visual_type == VisualType.CONCEPT:
            return concept_prompt(definition, word)
        if visual_type == VisualType.MNEMONIC:
            return mnemonic_prompt(mnemonic, word)
        return rhyme_prompt(definition, word)

    async def generate_and_upload(self, prompt: str, visual_type: VisualType, word: str) -> Optional[ImageResult]:
        generated = await self.stability.generate(prompt, visual_type)
        if generated is None:
            return None
        base64_data, seed = generated

        url, public_id = await self.cloudinary.upload(base64_data, word, visual_type)
        logger.info("Image for %s/%s uploaded: %s", word, visual_type.value, url)
        return ImageResult(image_url=url, public_id=public_id, seed=seed)


def get_image_pipeline() -> ImagePipeline:
    settings = get_settings()
    if not settings.STABILITY_API_KEY:
        raise AppError("Image generation is not configured", 503)
    if not settings.cloudinary_configured:
        raise AppError("Image upload is not configured", 503)
    return ImagePipeline(
        StabilityClient(settings.STABILITY_API_KEY),
        CloudinaryClient(
            settings.CLOUDINARY_CLOUD_NAME,
            settings.CLOUDINARY_API_KEY,
            settings.CLOUDINARY_API_SECRET,
        ),
    )
