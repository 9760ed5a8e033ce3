"""
Instrumentation guidance prompt
"""

from typing import Optional

INSTRUMENTATION_GUIDANCE = """
# OpenTelemetry instrumentation for Honeycomb

Review the code and recommend concrete instrumentation changes. Prefer
OpenTelemetry tracing; treat existing metrics code as out of scope for now.

## Existing logs

When the code already logs, improve those logs before adding anything new:

1. Use the right level: info for normal progress, warning for recoverable
   problems, error for failures (with the exception attached).
2. Replace print statements and interpolated messages with structured fields:

   ```
   logger.info("Processing order", extra={"app.order_id": order.id, "app.items_count": len(items)})
   ```

3. Merge several small log lines about one operation into one wide event that
   carries every field.
4. Keep high-cardinality values (user, request, order and product IDs) in their
   own fields so they can be grouped and filtered in Honeycomb.

## Spans

When there are no logs, or spans are requested:

1. Put request context and useful parameters on the current span:

   ```
   span = trace.get_current_span()
   span.set_attributes({"app.customer_id": request.customer_id, "app.order_type": request.type})
   ```

2. Create spans only around work whose duration matters (I/O, external
   calls, expensive computation), not around every function.
3. Record exceptions on the span and set its status to error.
4. Prefix custom attributes with `app.` and follow the OpenTelemetry semantic
   conventions for HTTP, database and messaging attributes.

## Output

Show the changed code, and for each change name the question it helps answer
in Honeycomb (for example "which customers see slow checkouts?").
"""


def get_instrumentation_guidance() -> str:
    return INSTRUMENTATION_GUIDANCE.strip()


def instrumentation_guidance_prompt(language: Optional[str] = None, filepath: Optional[str] = None) -> str:
    """User message for the instrumentation-guidance prompt."""
    target = language or "your code"
    location = f" for {filepath}" if filepath else ""
    return (
        f"I need help instrumenting {target}{location} with OpenTelemetry for Honeycomb. "
        f"Please provide specific recommendations following these guidelines:\n\n"
        f"{get_instrumentation_guidance()}"
    )
