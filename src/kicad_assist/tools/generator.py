"""Generator tools: status, models and model selection."""

from __future__ import annotations

from typing import Any

from .registry import register_tool


def _generator_status_handler() -> dict[str, Any]:
    """Report whether the generator service is reachable and which model is used."""
    from .. import state

    client = state.get_client()
    available = client.is_available()
    return {
        "available": available,
        "base_url": client.base_url,
        "model": client.get_model() if available else None,
    }


def _list_models_handler() -> dict[str, Any]:
    """List the models the generator service offers."""
    from .. import state

    models = state.get_client().list_models()
    return {"count": len(models), "models": models}


def _set_model_handler(name: str) -> dict[str, Any]:
    """Select the generator model.

    Args:
        name: Model name as listed by list_models, e.g. "qwen2.5-coder:32b".
    """
    from .. import state

    state.get_client().set_model(name)
    return {"status": "ok", "model": name}


register_tool(
    name="generator_status",
    description="Check the generator service connection and current model.",
    handler=_generator_status_handler,
    category="generator",
)

register_tool(
    name="list_models",
    description="List models available on the generator service.",
    handler=_list_models_handler,
    category="generator",
)

register_tool(
    name="set_model",
    description="Select which generator model the assistant uses.",
    handler=_set_model_handler,
    category="generator",
)
