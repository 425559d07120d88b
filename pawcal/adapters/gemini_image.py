"""Gemini Image Synthesizer Adapter

ImageSynthesizer ABC の実装。
Gemini の画像生成モデル（google-genai SDK）に元写真とプロンプトを渡し、
ペットを主役にした 1:1（1024x1024）の画像を1枚生成する。

genai.Client は呼び出し側（deps 等）で初期化して渡す。
"""

from __future__ import annotations

import base64
import logging
from typing import Any

from google import genai
from google.genai import types

from pawcal.domain.errors import SynthesisError
from pawcal.domain.ports import ImageSynthesizer

logger = logging.getLogger(__name__)

DEFAULT_MODEL = "gemini-2.5-flash-image"
ASPECT_RATIO = "1:1"  # このモデルの 1:1 出力は 1024x1024


class GeminiImageSynthesizer(ImageSynthesizer):
    """
    Gemini を使った画像生成実装。

    初期化済みの genai.Client を受け取ることで、
    テスト時のモック差し替えと Vertex AI / API キー方式の切り替えが容易になる。
    """

    def __init__(self, client: genai.Client, model_name: str = DEFAULT_MODEL) -> None:
        """
        Args:
            client: 初期化済みの genai.Client
            model_name: 画像生成モデル名
        """
        if client is None:
            raise ValueError("client is required")

        self._client = client
        self._model_name = model_name

        logger.info("GeminiImageSynthesizer initialized: model=%s", model_name)

    def synthesize(self, photo: bytes, mime_type: str, prompt: str) -> bytes:
        """
        元写真を編集して画像を1枚生成する。

        Args:
            photo: 元写真のバイト列
            mime_type: 元写真の MIME タイプ
            prompt: 編集指示

        Returns:
            生成画像のバイト列

        Raises:
            SynthesisError: API 呼び出し失敗、または画像データが含まれない場合
        """
        try:
            response = self._client.models.generate_content(
                model=self._model_name,
                contents=[
                    types.Part.from_bytes(data=photo, mime_type=mime_type),
                    prompt,
                ],
                config=types.GenerateContentConfig(
                    response_modalities=["IMAGE"],
                    candidate_count=1,
                    image_config=types.ImageConfig(aspect_ratio=ASPECT_RATIO),
                ),
            )
        except Exception as e:
            raise SynthesisError(f"Image generation request failed: {e}") from e

        usage = getattr(response, "usage_metadata", None)
        if usage:
            logger.info(
                "Gemini token usage: input=%s, output=%s, total=%s",
                getattr(usage, "prompt_token_count", None),
                getattr(usage, "candidates_token_count", None),
                getattr(usage, "total_token_count", None),
            )

        image = self._extract_image(response)
        if image is None:
            raise SynthesisError("No image data found in response")
        return image

    @staticmethod
    def _extract_image(response: Any) -> bytes | None:
        """先頭候補の inline_data から画像バイト列を取り出す"""
        candidates = getattr(response, "candidates", None) or []
        if not candidates:
            return None

        content = getattr(candidates[0], "content", None)
        for part in getattr(content, "parts", None) or []:
            inline_data = getattr(part, "inline_data", None)
            data = getattr(inline_data, "data", None) if inline_data else None
            if not data:
                continue
            if isinstance(data, str):
                return base64.b64decode(data)
            return data
        return None
