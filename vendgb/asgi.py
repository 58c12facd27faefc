"""
ASGI entrypoint: expose `app` pour les process managers (ex: uvicorn vendgb.asgi:app).
Toute la configuration FastAPI est centralisée dans vendgb.app_setup.factory.
"""

from vendgb.app import app

if __name__ == "__main__":
    import os
    import uvicorn
    uvicorn.run(
        "vendgb.asgi:app",
        host="0.0.0.0",
        port=int(os.getenv("PORT", "8000")),
        reload=True,
    )
