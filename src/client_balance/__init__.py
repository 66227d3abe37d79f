import os


def main() -> None:
    import uvicorn

    uvicorn.run(
        "client_balance.app:app",
        host=os.getenv("HOST", "127.0.0.1"),
        port=int(os.getenv("PORT", "8080")),
    )
