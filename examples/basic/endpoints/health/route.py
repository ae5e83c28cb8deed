"""Health check endpoint."""


def get(request, params) -> dict:
    """Check service health."""
    return {
        "status": "healthy",
        "service": "fastapi-endpoint-routing-basic-example",
    }
