"""Prompt text for every request the oracle sends.

Prompts are plain data: ``str.format`` templates plus fixed system prompts.
``Oracle`` fills them in; nothing here talks to the network.
"""

from __future__ import annotations

import textwrap

from softarch.architecture.models import FileRole

# ---------------------------------------------------------------------------
# System prompts
# ---------------------------------------------------------------------------

ARCHITECT_SYSTEM = (
    "You are an expert software architect who designs lean, well-organised "
    "backend project structures."
)

ANALYST_SYSTEM = (
    "You are a requirements analyst. You answer only with the JSON that was "
    "asked for, without explanations."
)

CODER_SYSTEM = (
    "You are a senior {language} developer who writes concise, production-ready "
    "code. Never wrap the code in Markdown fences. Output only valid source code."
)

# ---------------------------------------------------------------------------
# Architecture
# ---------------------------------------------------------------------------

ARCHITECTURE_PROMPT = textwrap.dedent("""\
    Design the folder and file structure of a Node.js backend for the project
    described below.

    Guidelines:
    - Modular MVC layout (models, controllers, routes, middleware, config).
    - Include only the files the description actually needs.
    - Mark files that can be produced from a standard template with
      "useTemplate": true and give their "templateType".

    Project description: {description}

    Respond ONLY with a JSON object of this shape:
    {{
      "folders": [
        {{"path": "relative/folder", "description": "What the folder holds"}}
      ],
      "files": [
        {{
          "path": "relative/file.js",
          "description": "What the file does",
          "useTemplate": true,
          "templateType": "model|controller|route|middleware|config|main"
        }}
      ]
    }}
""")

# ---------------------------------------------------------------------------
# Code generation, one prompt per file role
# ---------------------------------------------------------------------------

_CODE_FOOTER = textwrap.dedent("""\
    Stack: {language}, {framework}, database {database}, authentication {auth}.
    Project context: {context}

    Output only the source code of this file. Do NOT use Markdown fences such
    as ```javascript and do not add a file path header.
""")

_ROLE_PROMPTS: dict[FileRole, str] = {
    FileRole.MODEL: textwrap.dedent("""\
        Write the data model in {path}.
        Purpose: {description}
        Define the schema with field types, validation, sensible indexes and
        timestamps, then export the model.
    """),
    FileRole.CONTROLLER: textwrap.dedent("""\
        Write the controller in {path}.
        Purpose: {description}
        Implement async CRUD handlers (list with pagination, get by id,
        create, update, delete) with proper status codes and error handling.
        Import the matching model from ../models.
    """),
    FileRole.ROUTE: textwrap.dedent("""\
        Write the router in {path}.
        Purpose: {description}
        Map REST endpoints to the matching controller from ../controllers and
        protect write endpoints with the auth middleware when authentication
        is enabled. Export the router.
    """),
    FileRole.MIDDLEWARE: textwrap.dedent("""\
        Write the middleware in {path}.
        Purpose: {description}
        Export plain (req, res, next) functions with clear error responses.
    """),
    FileRole.CONFIG: textwrap.dedent("""\
        Write the configuration module in {path}.
        Purpose: {description}
        Read every secret and connection setting from environment variables
        and export a ready-to-use configuration or connection helper.
    """),
}

GENERIC_CODE_PROMPT = textwrap.dedent("""\
    Write the file {path}.
    Purpose: {description}
    Keep it concise, follow the framework's conventions and include only what
    the purpose requires.
""")


def code_prompt(role: FileRole, **values: str) -> str:
    """Return the filled-in code prompt for a file of the given *role*."""
    body = _ROLE_PROMPTS.get(role, GENERIC_CODE_PROMPT)
    return body.format(**values) + "\n" + _CODE_FOOTER.format(**values)


# ---------------------------------------------------------------------------
# Analysis prompts
# ---------------------------------------------------------------------------

RECOMMENDATION_PROMPT = textwrap.dedent("""\
    Recommend a backend stack for this project.

    Project description: {description}
    Additional notes from the user: {prompt}

    Respond ONLY with a JSON object:
    {{
      "database": "MongoDB|PostgreSQL|MySQL|SQLite",
      "framework": "Express|Fastify|Koa|NestJS",
      "auth": "JWT|OAuth|Session|none",
      "includeGraphQL": false,
      "includeWebsockets": false,
      "includeGlobalQuery": false,
      "recommendations": ["..."],
      "suggestions": ["..."]
    }}
""")

ENTITIES_PROMPT = textwrap.dedent("""\
    List the main domain entities (data models) of the project below.
    Use singular, lower-case English names, for example "user", "product".

    Project description: {description}

    Respond ONLY with a JSON array of strings, e.g. ["user", "product", "order"].
""")

CLASSIFY_PROMPT = textwrap.dedent("""\
    Decide what the user wants from this request:
    "{request}"

    Possible actions:
    - "generateProject": generate a complete backend (give a "name" and a
      cleaned-up "description", plus any stack "options" mentioned)
    - "webhook": add an incoming webhook (give the "service", e.g. WhatsApp,
      Stripe, GitHub)
    - "regenerateProject": regenerate a saved project (give its "name")

    Respond ONLY with a JSON object, e.g.
    {{"action": "webhook", "service": "Stripe"}}
    {{"action": "generateProject", "name": "shop-api", "description": "...", "options": {{"database": "PostgreSQL"}}}}
""")

# ---------------------------------------------------------------------------
# Template fragments
# ---------------------------------------------------------------------------

FRAGMENT_PROMPT = textwrap.dedent("""\
    A {kind} file is being generated from a standard template. Write ONLY the
    additional code that belongs at the extension point of that template:
    extra handlers, helpers or registrations that this specific project needs
    and that plain CRUD boilerplate does not cover. If nothing is needed,
    answer with a single comment line.

    Template data: {data}
    Project context: {context}

    Output raw {language} code without Markdown fences.
""")

FULL_FILE_PROMPT = textwrap.dedent("""\
    Write the complete {kind} file for this project; no template is available.

    Template data: {data}
    Project context: {context}

    Output raw source code without Markdown fences.
""")

MODEL_FIELDS_PROMPT = textwrap.dedent("""\
    List the fields of the data model described below.
    Model description: {description}
    Database: {database}

    Respond ONLY with a JSON array of objects:
    [{{"name": "title", "type": "String", "required": true, "unique": false, "default": null, "ref": null}}]
    Use {database}-friendly types (String, Number, Boolean, Date, ObjectId, Array, Mixed).
""")

MODEL_METHODS_PROMPT = textwrap.dedent("""\
    Suggest useful instance method names for the data model described below.
    They will be implemented later.
    Model description: {description}

    Respond ONLY with a JSON array of names, e.g. ["findByName", "calculateTotal"].
    Answer [] when no custom methods are needed.
""")

WEBHOOK_CONFIG_PROMPT = textwrap.dedent("""\
    Describe how incoming webhooks from {service} are verified and what events
    they carry.

    Respond ONLY with a JSON object:
    {{
      "serviceName": "{service}",
      "description": "...",
      "verificationToken": "ENV_VAR_NAME or null",
      "signatureMethod": "hmac|token|none",
      "signatureHeader": "header carrying the signature",
      "hashAlgorithm": "sha256",
      "digestFormat": "hex|base64",
      "signaturePrefix": "prefix before the digest or null",
      "challenge": false,
      "challengeParam": null,
      "eventTypeField": "field holding the event type",
      "eventTypes": [{{"name": "...", "type": "...", "description": "..."}}]
    }}
""")
