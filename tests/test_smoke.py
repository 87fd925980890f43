"""Smoke test to verify the test infrastructure works."""


def test_imports():
    """Verify core dependencies can be imported."""
    import aiosqlite
    import fastapi
    import httpx
    import pydantic
    import pydantic_settings
    import sqlalchemy

    assert fastapi.__version__
    assert sqlalchemy.__version__
    assert httpx.__version__
    assert pydantic.__version__
    assert aiosqlite.__version__
    assert pydantic_settings.__version__
