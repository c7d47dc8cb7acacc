import typer
import requests
import os


app = typer.Typer()
BASE = os.getenv("API_BASE", "http://127.0.0.1:8000")
API_KEY = os.getenv("API_KEY")
CHAT_ID = os.getenv("CHAT_ID", "cli")


def _headers():
    h = {}
    if API_KEY:
        h["X-API-Key"] = API_KEY
    return h


def _show(r: requests.Response):
    try:
        typer.echo(r.json())
    except ValueError:
        typer.echo(r.text)
    if r.status_code >= 400:
        raise typer.Exit(code=1)


@app.command()
def stats(text: bool = typer.Option(False, "--text", help="Human-readable summary")):
    if text:
        r = requests.get(f"{BASE}/stats/text", headers=_headers())
        typer.echo(r.text)
        return
    _show(requests.get(f"{BASE}/stats", headers=_headers()))


@app.command()
def predict():
    _show(requests.get(f"{BASE}/predict", headers=_headers()))


@app.command()
def confirm(symbol: int):
    _show(requests.post(f"{BASE}/confirm", json={"symbol": symbol}, headers=_headers()))


@app.command()
def wrong(symbol: int):
    _show(requests.post(f"{BASE}/wrong", json={"symbol": symbol}, headers=_headers()))


@app.command()
def bulk(text: str):
    _show(requests.post(f"{BASE}/bulk", json={"text": text}, headers=_headers()))


@app.command()
def reset(yes: bool = typer.Option(False, "--yes", help="Skip the confirmation prompt")):
    body = {"chat_id": CHAT_ID}
    r = requests.post(f"{BASE}/reset", json=body, headers=_headers())
    if r.status_code >= 400:
        _show(r)
    if not yes and not typer.confirm("Wipe all shared data?"):
        _show(requests.post(f"{BASE}/reset/cancel", json=body, headers=_headers()))
        return
    _show(requests.post(f"{BASE}/reset/confirm", json=body, headers=_headers()))


@app.command()
def serve(host: str = "0.0.0.0", port: int = int(os.getenv("PORT", 8000))):
    import uvicorn

    uvicorn.run("symbol_oracle.api.main:app", host=host, port=port)


if __name__ == "__main__":
    app()
