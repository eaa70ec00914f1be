# llm_check.py
import argparse
import json
import sys
from typing import List, Optional

from colorama import init
from dotenv import load_dotenv

import console
from backends import Provider
from llm_gateway import LLMGateway

PING_PROMPT = 'Reply with the JSON object {"status": "ok"}.'


def check(gateway: LLMGateway, interactive: bool = True) -> bool:
    provider = gateway.initialize(interactive=interactive)
    if provider == Provider.OLLAMA:
        ok, url = gateway.test_ollama_connection()
        if not ok:
            console.error(f"Ollama is not reachable at {url}.")
            return False

    reply = gateway.generate(PING_PROMPT, temperature=0.0, json_mode=True)
    if reply is None:
        console.error(f"No reply from {provider}.")
        return False
    try:
        payload = json.loads(reply)
    except json.JSONDecodeError:
        console.error(f"{provider} replied with invalid JSON: {reply[:200]}")
        return False
    console.success(f"{provider} replied: {payload}")
    return True


def main(argv: Optional[List[str]] = None) -> int:
    load_dotenv()
    init(autoreset=True)
    ap = argparse.ArgumentParser(description="Check that the configured LLM provider answers.")
    ap.add_argument("--non-interactive", action="store_true")
    ap.add_argument("--debug", action="store_true")
    args = ap.parse_args(argv)
    if args.debug:
        console.set_debug(True)
    return 0 if check(LLMGateway(), interactive=not args.non_interactive) else 1


if __name__ == "__main__":
    sys.exit(main())
