"""
Built-in Node Handlers.

Stand-ins for the real integrations behind each node kind: scraping,
structured output, embeddings, vector search and LLM calls. They check
the same preconditions a real integration would, simulate its latency,
and return output in the same shape, so they can be swapped for real
implementations through the HandlerRegistry.
"""

from typing import Any, Dict, List, Optional
from datetime import datetime, timezone
import asyncio
import math
import random

from nodeflow.config import settings
from nodeflow.engine.errors import HandlerError
from nodeflow.engine.models import NodeKind
from nodeflow.handlers.node_configs import config_value


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


async def simulate_latency(seconds: float) -> None:
    """Sleep for `seconds` scaled by HANDLER_LATENCY_SCALE."""
    await asyncio.sleep(max(seconds * settings.HANDLER_LATENCY_SCALE, 0))


def _field(input_data: Any, key: str) -> Any:
    if isinstance(input_data, dict):
        return input_data.get(key)
    return None


def _positive_int(value: Any, label: str, kind: NodeKind) -> int:
    try:
        number = int(value)
    except (TypeError, ValueError):
        raise HandlerError(f"{label} must be a positive integer, got {value!r}", kind=kind.value)
    if number <= 0:
        raise HandlerError(f"{label} must be a positive integer, got {value!r}", kind=kind.value)
    return number


# ============================================================
# Handlers
# ============================================================

async def web_scraping(input_data: Any, config: Dict[str, Any]) -> Dict[str, Any]:
    """Fetch a web page and summarize it."""
    kind = NodeKind.WEB_SCRAPING
    url = config_value(kind, config, "url") or _field(input_data, "url")
    if not url:
        raise HandlerError("URL is required for web scraping", kind=kind.value)

    await simulate_latency(1.0)

    max_length = config_value(kind, config, "maxLength")
    summary = (
        f"Summary of the content published at {url}. The page covers its main "
        f"topics, key insights and structured data, condensed according to the "
        f"configured parameters."
    )
    if isinstance(max_length, int) and max_length > 0:
        summary = summary[:max_length]

    result = {
        "url": url,
        "title": f"Scraped content from {url}",
        "summary": summary,
        "content": f"Full extracted content from {url} including text, headings and structured data...",
        "timestamp": _now(),
        "metadata": {
            "wordCount": random.randint(500, 2499),
            "language": "en",
            "contentType": "website",
            "scrapedAt": _now(),
        },
    }
    if config_value(kind, config, "includeImages"):
        result["images"] = [{"alt": f"Image {i + 1} from {url}", "description": "Image description"} for i in range(3)]
    return result


async def structured_output(input_data: Any, config: Dict[str, Any]) -> Dict[str, Any]:
    """Extract a structured object matching the configured schema."""
    kind = NodeKind.STRUCTURED_OUTPUT
    schema = config_value(kind, config, "schema")
    if not schema:
        raise HandlerError("Schema is required for structured output", kind=kind.value)

    await simulate_latency(0.8)

    return {
        "structured": {
            "title": "Extracted Title",
            "content": "Extracted content based on schema",
            "metadata": {
                "confidence": 0.95,
                "timestamp": _now(),
            },
        },
        "schema": schema,
        "model": config_value(kind, config, "model"),
        "raw": input_data,
    }


def _embedding_text(input_data: Any) -> Optional[str]:
    if isinstance(input_data, str):
        return input_data
    text = _field(input_data, "text") or _field(input_data, "content")
    if isinstance(text, str):
        return text
    return None


async def embedding_generator(input_data: Any, config: Dict[str, Any]) -> Dict[str, Any]:
    """Turn text into an embedding vector."""
    kind = NodeKind.EMBEDDING_GENERATOR
    text = _embedding_text(input_data)
    if not text or not text.strip():
        raise HandlerError("Text is required for embedding generation", kind=kind.value)

    dimensions = _positive_int(config_value(kind, config, "dimensions"), "Dimensions", kind)

    await simulate_latency(0.6)

    embedding = [random.uniform(-1, 1) for _ in range(dimensions)]
    if config_value(kind, config, "normalize"):
        norm = math.sqrt(sum(value * value for value in embedding)) or 1.0
        embedding = [value / norm for value in embedding]

    return {
        "embedding": embedding,
        "text": text,
        "dimensions": dimensions,
        "model": config_value(kind, config, "model"),
    }


async def similarity_search(input_data: Any, config: Dict[str, Any]) -> Dict[str, Any]:
    """Query a vector store for the closest matches."""
    kind = NodeKind.SIMILARITY_SEARCH
    vector_store = config_value(kind, config, "vectorStore")
    if not vector_store:
        raise HandlerError("Vector store ID is required for similarity search", kind=kind.value)

    top_k = _positive_int(config_value(kind, config, "topK"), "Top K", kind)

    await simulate_latency(0.7)

    # Scores fall by 0.1 per rank
    results: List[Dict[str, Any]] = [
        {
            "id": f"result_{i + 1}",
            "content": f"Similar content {i + 1}",
            "similarity": round(0.9 - i * 0.1, 4),
            "metadata": {
                "source": f"document_{i + 1}",
                "timestamp": _now(),
            },
        }
        for i in range(top_k)
    ]

    return {
        "results": results,
        "query": input_data,
        "vectorStore": vector_store,
        "topK": top_k,
    }


_ANALYSIS_RESPONSE = """Based on the provided data, here is the analysis:

**Key Insights:**
- The data shows consistent patterns with clear room for optimization
- Core metrics are stable, with a few areas that need attention

**Recommendations:**
1. Prioritize initiatives with the highest expected impact
2. Track progress against a small set of agreed metrics
3. Automate routine steps where possible"""

_GENERATION_RESPONSE = """Here is the generated content:

**Draft:**
A headline, a short introduction, three supporting points and a closing
call to action, written in a professional tone for the target audience.

The draft is ready to use and can be adapted to other formats."""


def _llm_response(prompt: str) -> str:
    lowered = prompt.lower()
    if "analyze" in lowered or "analysis" in lowered:
        return _ANALYSIS_RESPONSE
    if "generate" in lowered or "create" in lowered:
        return _GENERATION_RESPONSE
    return (
        f"Here is my response to your request:\n\n{prompt}\n\n"
        "The response addresses each point of the request and closes with "
        "suggested next steps."
    )


async def llm_task(input_data: Any, config: Dict[str, Any]) -> Dict[str, Any]:
    """Run a prompt through a language model."""
    kind = NodeKind.LLM_TASK
    prompt = config_value(kind, config, "prompt")
    if not prompt:
        raise HandlerError("Prompt is required for LLM task", kind=kind.value)

    await simulate_latency(1.2)

    prompt_tokens = random.randint(100, 299)
    completion_tokens = random.randint(200, 499)

    return {
        "response": _llm_response(str(prompt)),
        "model": config_value(kind, config, "model"),
        "usage": {
            "promptTokens": prompt_tokens,
            "completionTokens": completion_tokens,
            "totalTokens": prompt_tokens + completion_tokens,
        },
        "metadata": {
            "temperature": config_value(kind, config, "temperature"),
            "maxTokens": config_value(kind, config, "maxTokens"),
            "generatedAt": _now(),
        },
    }


async def data_input(input_data: Any, config: Dict[str, Any]) -> Dict[str, Any]:
    """Pass the run's input through, tagged with its declared type."""
    return {
        "data": input_data,
        "type": config_value(NodeKind.DATA_INPUT, config, "inputType"),
        "timestamp": _now(),
    }


async def data_output(input_data: Any, config: Dict[str, Any]) -> Dict[str, Any]:
    """Pass data through, tagged with its output format and filename."""
    return {
        "output": input_data,
        "format": config_value(NodeKind.DATA_OUTPUT, config, "outputFormat"),
        "filename": config_value(NodeKind.DATA_OUTPUT, config, "filename"),
        "timestamp": _now(),
    }


BUILTIN_HANDLERS = {
    NodeKind.WEB_SCRAPING: web_scraping,
    NodeKind.STRUCTURED_OUTPUT: structured_output,
    NodeKind.EMBEDDING_GENERATOR: embedding_generator,
    NodeKind.SIMILARITY_SEARCH: similarity_search,
    NodeKind.LLM_TASK: llm_task,
    NodeKind.DATA_INPUT: data_input,
    NodeKind.DATA_OUTPUT: data_output,
}
