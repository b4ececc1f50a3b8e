"""Typed requests to the LLM oracle.

``Oracle`` turns each kind of question (architecture, per-file code, stack
recommendation, entity list, request intent, template fragment, model
fields, webhook details) into a prompt, sends it through ``LLMClient`` and
extracts a typed answer from the free-form reply.

Failure policy: a failed transport call raises ``OracleTransportError``; a
reply without the requested structure raises ``OracleProtocolError``. A few
helpers whose callers always want *something* (recommendation, model
fields, model methods, webhook details) absorb those errors and return
documented defaults instead.
"""

from __future__ import annotations

import json
import re
from pathlib import PurePosixPath
from typing import Any

from pydantic import ValidationError

from softarch.architecture.models import (
    Architecture,
    GenerationContext,
    Intent,
    Recommendation,
    WebhookConfig,
)
from softarch.architecture.roles import classify_role, is_cacheable
from softarch.errors import OracleError, OracleProtocolError, OracleTransportError
from softarch.llm_client import LLMClient
from softarch.oracle import prompts
from softarch.oracle.extract import parse_json_array, parse_json_object, strip_code_fences
from softarch.utils import print_warning

# ---------------------------------------------------------------------------
# Defaults
# ---------------------------------------------------------------------------

DEFAULT_MODEL_FIELDS: list[dict[str, Any]] = [
    {"name": "name", "type": "String", "required": True},
    {"name": "description", "type": "String", "required": False},
    {"name": "createdAt", "type": "Date", "default": "Date.now"},
]

# Webhook verification details for services we know; anything else is asked of the LLM.
_KNOWN_WEBHOOK_SERVICES: dict[str, dict[str, Any]] = {
    "whatsapp": {
        "serviceName": "WhatsApp",
        "description": "WhatsApp Business Cloud API webhook",
        "signatureMethod": "hmac",
        "signatureHeader": "x-hub-signature-256",
        "hashAlgorithm": "sha256",
        "digestFormat": "hex",
        "signaturePrefix": "sha256=",
        "challenge": True,
        "challengeParam": "hub.challenge",
        "eventTypeField": "object",
        "eventTypes": [
            {"name": "messages", "type": "message", "description": "Incoming user message"},
            {"name": "statuses", "type": "status", "description": "Delivery status update"},
        ],
    },
    "github": {
        "serviceName": "GitHub",
        "description": "GitHub repository webhook",
        "signatureMethod": "hmac",
        "signatureHeader": "x-hub-signature-256",
        "hashAlgorithm": "sha256",
        "digestFormat": "hex",
        "signaturePrefix": "sha256=",
        "eventTypeField": "action",
        "eventTypes": [
            {"name": "push", "type": "push", "description": "Commits pushed to a branch"},
            {"name": "pull_request", "type": "pull_request", "description": "Pull request activity"},
            {"name": "issues", "type": "issues", "description": "Issue activity"},
        ],
    },
    "stripe": {
        "serviceName": "Stripe",
        "description": "Stripe payments webhook",
        "signatureMethod": "hmac",
        "signatureHeader": "stripe-signature",
        "hashAlgorithm": "sha256",
        "digestFormat": "hex",
        "eventTypeField": "type",
        "eventTypes": [
            {"name": "payment_intent.succeeded", "type": "payment", "description": "Payment completed"},
            {"name": "checkout.session.completed", "type": "checkout", "description": "Checkout finished"},
            {"name": "customer.subscription.deleted", "type": "subscription", "description": "Subscription cancelled"},
        ],
    },
    "slack": {
        "serviceName": "Slack",
        "description": "Slack Events API webhook",
        "signatureMethod": "hmac",
        "signatureHeader": "x-slack-signature",
        "hashAlgorithm": "sha256",
        "digestFormat": "hex",
        "signaturePrefix": "v0=",
        "challenge": True,
        "challengeParam": "challenge",
        "eventTypeField": "type",
        "eventTypes": [
            {"name": "event_callback", "type": "event", "description": "Workspace event"},
        ],
    },
    "twitch": {
        "serviceName": "Twitch",
        "description": "Twitch EventSub webhook",
        "signatureMethod": "hmac",
        "signatureHeader": "twitch-eventsub-message-signature",
        "hashAlgorithm": "sha256",
        "digestFormat": "hex",
        "signaturePrefix": "sha256=",
        "challenge": True,
        "challengeParam": "challenge",
        "eventTypeField": "subscription",
        "eventTypes": [
            {"name": "stream.online", "type": "stream", "description": "Broadcaster went live"},
            {"name": "channel.follow", "type": "follow", "description": "New follower"},
        ],
    },
    "telegram": {
        "serviceName": "Telegram",
        "description": "Telegram Bot API webhook",
        "signatureMethod": "token",
        "signatureHeader": "x-telegram-bot-api-secret-token",
        "eventTypeField": "message",
        "eventTypes": [
            {"name": "message", "type": "message", "description": "New message to the bot"},
            {"name": "callback_query", "type": "callback", "description": "Inline button pressed"},
        ],
    },
}


_ENV_NAME_RE = re.compile(r"^[A-Z][A-Z0-9_]*$")


def cache_key(path: str, database: str) -> tuple[str, str, str]:
    """``(parent-directory basename, file name, database kind)`` for *path*."""
    pure = PurePosixPath(path)
    return (pure.parent.name, pure.name, (database or "generic").lower())


# ---------------------------------------------------------------------------
# Oracle
# ---------------------------------------------------------------------------


class Oracle:
    """Typed facade over the chat-completions transport.

    Holds a process-local cache of generated code for generic files (auth
    middleware, database configuration, ``utils/``, ``helpers/``) so the
    same artefact is requested from the LLM only once per run.
    """

    def __init__(self, llm: LLMClient) -> None:
        self.llm = llm
        self._code_cache: dict[tuple[str, str, str], str] = {}

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    async def _ask(
        self,
        system: str,
        prompt: str,
        temperature: float,
        max_tokens: int | None = None,
    ) -> str:
        response = await self.llm.chat(
            [
                {"role": "system", "content": system},
                {"role": "user", "content": prompt},
            ],
            temperature=temperature,
            max_tokens=max_tokens,
        )
        if not response.success:
            raise OracleTransportError(response.error or "LLM request failed")
        return response.text

    @staticmethod
    def _context_summary(context: GenerationContext) -> str:
        """Compact JSON view of the project handed to code prompts."""
        return json.dumps(
            {
                "projectName": context.project_name or "api",
                "description": context.description,
                "database": context.database,
                "framework": context.framework,
                "auth": context.auth,
                "models": [model.name for model in context.models],
                "routes": [route.dump() for route in context.routes],
            },
            ensure_ascii=False,
        )

    # ------------------------------------------------------------------
    # Architecture
    # ------------------------------------------------------------------

    async def generate_architecture(self, description: str) -> Architecture:
        """Ask for a folder/file structure and parse it into an ``Architecture``.

        Raises:
            OracleTransportError: The request failed.
            OracleProtocolError: No usable JSON object in the reply.
        """
        text = await self._ask(
            prompts.ARCHITECT_SYSTEM,
            prompts.ARCHITECTURE_PROMPT.format(description=description),
            temperature=0.2,
        )
        data = parse_json_object(text)
        if data is None or not ("files" in data or "folders" in data):
            raise OracleProtocolError("Architecture reply contained no JSON object")
        try:
            architecture = Architecture.model_validate(data)
        except ValidationError as exc:
            raise OracleProtocolError(f"Architecture reply has the wrong shape: {exc}") from exc
        architecture.refresh_optimization_info()
        return architecture

    # ------------------------------------------------------------------
    # Code
    # ------------------------------------------------------------------

    async def generate_code(
        self,
        file_path: str,
        description: str,
        context: GenerationContext,
    ) -> str:
        """Synthesize the full source of *file_path*, fence-free.

        Cacheable files are served from the cache on repeat requests with the
        same ``(parent dir, file name, database)``.
        """
        key = cache_key(file_path, context.database)
        cacheable = is_cacheable(file_path)
        if cacheable and key in self._code_cache:
            return self._code_cache[key]

        prompt = prompts.code_prompt(
            classify_role(file_path),
            path=file_path,
            description=description,
            language=context.language,
            framework=context.framework,
            database=context.database,
            auth=context.auth,
            context=self._context_summary(context),
        )
        text = await self._ask(
            prompts.CODER_SYSTEM.format(language=context.language),
            prompt,
            temperature=0.3,
        )
        code = strip_code_fences(text)
        if cacheable:
            self._code_cache[key] = code
        return code

    async def generate_fragment(
        self,
        kind: str,
        data: dict[str, Any],
        context: GenerationContext,
    ) -> str:
        """Project-specific code to inject at a template's extension point."""
        text = await self._ask(
            prompts.CODER_SYSTEM.format(language=context.language),
            prompts.FRAGMENT_PROMPT.format(
                kind=kind,
                data=json.dumps(data, ensure_ascii=False, default=str),
                context=self._context_summary(context),
                language=context.language,
            ),
            temperature=0.3,
        )
        return strip_code_fences(text)

    async def generate_full_file(
        self,
        kind: str,
        data: dict[str, Any],
        context: GenerationContext,
    ) -> str:
        """Whole-file synthesis used when a template is missing."""
        text = await self._ask(
            prompts.CODER_SYSTEM.format(language=context.language),
            prompts.FULL_FILE_PROMPT.format(
                kind=kind,
                data=json.dumps(data, ensure_ascii=False, default=str),
                context=self._context_summary(context),
            ),
            temperature=0.3,
        )
        return strip_code_fences(text)

    # ------------------------------------------------------------------
    # Analysis
    # ------------------------------------------------------------------

    async def generate_recommendation(self, description: str, prompt: str = "") -> Recommendation:
        """Recommend a stack; absent keys take the defaults.

        Never raises for oracle failures: the defaults come back with a
        ``note`` explaining why.
        """
        try:
            text = await self._ask(
                prompts.ANALYST_SYSTEM,
                prompts.RECOMMENDATION_PROMPT.format(description=description, prompt=prompt or "none"),
                temperature=0.3,
            )
            data = parse_json_object(text)
            if data is None:
                raise OracleProtocolError("Recommendation reply contained no JSON object")
            return Recommendation.model_validate(data)
        except (OracleError, ValidationError) as exc:
            print_warning(f"Recommendation unavailable, using defaults: {exc}")
            return Recommendation(note=f"Default recommendation used: {exc}")

    async def extract_entities(self, description: str) -> list[str]:
        """Singular lower-case entity names mentioned by *description*.

        Raises:
            OracleTransportError: The request failed.
            OracleProtocolError: No JSON array in the reply.
        """
        text = await self._ask(
            prompts.ANALYST_SYSTEM,
            prompts.ENTITIES_PROMPT.format(description=description),
            temperature=0.1,
            max_tokens=500,
        )
        items = parse_json_array(text)
        if items is None:
            raise OracleProtocolError("Entity reply contained no JSON array")

        entities: list[str] = []
        for item in items:
            if not isinstance(item, str):
                continue
            name = item.strip().lower()
            if name and name not in entities:
                entities.append(name)
        return entities

    async def classify_request(self, request: str) -> Intent:
        """Work out which action a natural-language request asks for."""
        text = await self._ask(
            prompts.ANALYST_SYSTEM,
            prompts.CLASSIFY_PROMPT.format(request=request),
            temperature=0.1,
            max_tokens=500,
        )
        data = parse_json_object(text)
        if data is None or not data.get("action"):
            raise OracleProtocolError("Could not interpret the request")
        try:
            return Intent.model_validate(data)
        except ValidationError as exc:
            raise OracleProtocolError(f"Request analysis has the wrong shape: {exc}") from exc

    # ------------------------------------------------------------------
    # Template data
    # ------------------------------------------------------------------

    async def generate_model_fields(
        self,
        description: str,
        context: GenerationContext,
    ) -> list[dict[str, Any]]:
        """Schema fields for a model template; falls back to name/description/createdAt."""
        try:
            text = await self._ask(
                prompts.ANALYST_SYSTEM,
                prompts.MODEL_FIELDS_PROMPT.format(description=description, database=context.database),
                temperature=0.2,
            )
        except OracleError as exc:
            print_warning(f"  Model fields unavailable, using defaults: {exc}")
            return [dict(field) for field in DEFAULT_MODEL_FIELDS]

        items = parse_json_array(text)
        fields = [item for item in items or [] if isinstance(item, dict) and item.get("name")]
        if not fields:
            return [dict(field) for field in DEFAULT_MODEL_FIELDS]
        return fields

    async def generate_model_methods(
        self,
        description: str,
        context: GenerationContext,
    ) -> list[dict[str, Any]]:
        """Instance method names for a model template; empty on any failure."""
        try:
            text = await self._ask(
                prompts.ANALYST_SYSTEM,
                prompts.MODEL_METHODS_PROMPT.format(description=description),
                temperature=0.2,
                max_tokens=500,
            )
        except OracleError as exc:
            print_warning(f"  Model methods unavailable: {exc}")
            return []

        methods: list[dict[str, Any]] = []
        for item in parse_json_array(text) or []:
            if isinstance(item, str) and item.strip():
                methods.append({"name": item.strip()})
            elif isinstance(item, dict) and item.get("name"):
                methods.append({"name": item["name"], "implementation": item.get("implementation")})
        return methods

    async def generate_webhook_config(self, service: str) -> WebhookConfig:
        """Verification details for *service*'s webhooks.

        Known services come from a fixed table. Others are asked of the LLM,
        and an HMAC-SHA256 default is used if that fails.
        """
        known = _KNOWN_WEBHOOK_SERVICES.get(service.strip().lower().replace(" ", ""))
        if known is not None:
            config = WebhookConfig.model_validate(known)
            config.verification_token = config.secret_env_var
            return config

        try:
            text = await self._ask(
                prompts.ANALYST_SYSTEM,
                prompts.WEBHOOK_CONFIG_PROMPT.format(service=service),
                temperature=0.2,
            )
            data = parse_json_object(text)
            if data is None:
                raise OracleProtocolError("Webhook reply contained no JSON object")
            data.setdefault("serviceName", service)
            config = WebhookConfig.model_validate(data)
        except (OracleError, ValidationError) as exc:
            print_warning(f"Webhook details for {service} unavailable, using HMAC defaults: {exc}")
            config = WebhookConfig(
                service_name=service.strip(),
                description=f"{service} webhook",
                signature_method="hmac",
                signature_header="x-signature",
                hash_algorithm="sha256",
                digest_format="hex",
            )
            config.verification_token = config.secret_env_var
            return config
        token = config.verification_token or ""
        if config.signature_method != "none" and not _ENV_NAME_RE.match(token):
            config.verification_token = config.secret_env_var
        return config
