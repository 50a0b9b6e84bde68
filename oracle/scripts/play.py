"""
Joue une session de l'Oracle dans le terminal.

Usage:
    python -m oracle.scripts.play [--fast] [--jitter hash] [--lenient]

Commandes pendant la partie:
- texte libre: réponse à l'Oracle
- `/s N`: choisit la carte de suggestion N
- `/buy N`: achète le palier N (1, 2 ou 3) sur le paywall
- `/quit`: quitte
"""

from __future__ import annotations

import argparse
import asyncio

from oracle.core.container import container
from oracle.core.logging import setup_logging
from oracle.domain.entities import InvalidEventError, Message
from oracle.domain.interpretations import PURCHASE_TIERS
from oracle.domain.orchestrator import FlowOptions, Purchase, Start, SuggestionSelected, UserInput
from oracle.domain.phases import get_phase_config


def _print_message(message: Message) -> None:
    if message.type == "user":
        return
    if message.type == "oracle":
        print(f"  Oracle: {message.content}")
    else:
        print(f"  [{message.type}] {message.content}")


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    ap = argparse.ArgumentParser(description="Session console de l'Oracle")
    ap.add_argument("--fast", action="store_true", help="ne pas rejouer les pauses")
    ap.add_argument(
        "--jitter",
        choices=["random", "seeded", "hash", "none"],
        default=None,
        help="aléa de la compatibilité (défaut: configuration)",
    )
    ap.add_argument("--seed", type=int, default=None)
    ap.add_argument("--lenient", action="store_true", help="ne pas valider noms et emails")
    return ap.parse_args(argv)


async def play(args: argparse.Namespace) -> None:
    session = container.new_session(realtime=not args.fast, on_message=_print_message)
    defaults = container.flow_options()
    session.options = FlowOptions(
        strict_validation=defaults.strict_validation and not args.lenient,
        payment_delay_ms=defaults.payment_delay_ms,
        jitter_mode=args.jitter or defaults.jitter_mode,
        jitter_seed=args.seed if args.seed is not None else defaults.jitter_seed,
    )
    await session.dispatch(Start())
    while True:
        cards = await session.suggestions()
        for i, card in enumerate(cards, start=1):
            print(f"    ({i}) {card}")
        if session.phase.value.endswith("paywall"):
            tiers = ", ".join(f"{n}: {t.name} ${t.price}" for n, t in PURCHASE_TIERS.items())
            print(f"    /buy N -> {tiers}")
        cfg = get_phase_config(session.phase)
        prompt = f"{cfg.placeholder or '...'} > "
        line = (await asyncio.to_thread(input, prompt)).strip()
        if line == "/quit":
            session.cancel()
            return
        if line.startswith("/s "):
            idx = int(line[3:].strip()) - 1
            if 0 <= idx < len(cards):
                await session.dispatch(SuggestionSelected(text=cards[idx]))
            continue
        if line.startswith("/buy "):
            try:
                await session.dispatch(Purchase(tier=int(line[5:].strip())))
            except (InvalidEventError, ValueError) as exc:
                print(f"    ! {exc}")
            continue
        await session.dispatch(UserInput(text=line))


def main(argv: list[str] | None = None) -> None:
    args = parse_args(argv)
    setup_logging(container.settings.LOG_LEVEL)
    try:
        asyncio.run(play(args))
    except (KeyboardInterrupt, EOFError):
        print()


if __name__ == "__main__":
    main()
