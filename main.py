import uvicorn

from support_chat.main import configure_logging, create_app

configure_logging()

# Fails fast here when the Azure OpenAI variables are missing
app = create_app()

if __name__ == "__main__":
    uvicorn.run("main:app", host="0.0.0.0", port=8000)
