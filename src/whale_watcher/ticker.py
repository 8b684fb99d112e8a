"""Turn Kalshi market tickers into a short description of the position taken.

Tickers look like ``KXNHLGAME-26JAN08ANACAR-CAR`` (NHL game, Carolina wins),
``KXNCAAFTOTAL-26JAN08MIAMISS-51`` (total points over 51), ``KXHIGHNY-24DEC-T63``
(NYC high temperature) or ``KXETHD-26JAN0818-T3109.99`` (ETH price threshold).
Anything unrecognised falls back to a generic hint, never an error. Output is
plain ASCII text so it passes through the outbound sanitizer unchanged.
"""

from __future__ import annotations

_ASSETS = (
    ("ETH", "Ethereum (ETH)"),
    ("BTC", "Bitcoin (BTC)"),
    ("SOL", "Solana (SOL)"),
    ("SPX", "S&P 500"),
    ("TSLA", "Tesla"),
    ("AAPL", "Apple"),
    ("GOOGL", "Google"),
    ("META", "Meta"),
    ("AMZN", "Amazon"),
    ("MSFT", "Microsoft"),
    ("NVDA", "NVIDIA"),
    ("BRK", "Berkshire Hathaway"),
)

_SPORTS = (
    ("NFL", "NFL"),
    ("NBA", "NBA"),
    ("NHL", "NHL"),
    ("MLB", "MLB"),
    ("NCAAF", "College Football"),
    ("CFB", "College Football"),
    ("NCAAB", "College Basketball"),
    ("CBB", "College Basketball"),
    ("SOCCER", "Soccer"),
)

_GAME_MARKERS = ("NHLGAME", "NFLGAME", "NBAGAME", "MLBGAME", "SOCCERGAME")


def _sport(ticker: str, default: str) -> str:
    for marker, name in _SPORTS:
        if marker in ticker:
            return name
    return default


def _teams(segment: str) -> tuple[str, str] | None:
    # Game segments end with two three-letter team codes, e.g. 26JAN08ANACAR.
    if len(segment) < 6:
        return None
    codes = segment[-6:].upper()
    return codes[:3], codes[3:]


def describe(ticker: str, side: str | None) -> str:
    ticker = (ticker or "").upper()
    yes = (side or "").strip().upper() in ("YES", "BUY")
    parts = [p for p in ticker.split("-") if p]
    last = parts[-1] if parts else ""

    for marker, asset in _ASSETS:
        if marker in ticker and last.startswith("T") and len(last) > 1:
            cmp = "at or above" if yes else "below"
            return f"{asset} {cmp} ${last[1:]} at expiry"

    if "TOTAL" in ticker and last.isdigit():
        sport = _sport(ticker, "Game")
        direction = "OVER" if yes else "UNDER"
        teams = _teams(parts[-2]) if len(parts) >= 3 else None
        if teams:
            return f"Total {direction} {last} - {teams[0]} @ {teams[1]} ({sport})"
        return f"Total {direction} {last} ({sport})"

    if any(marker in ticker for marker in _GAME_MARKERS) and len(parts) >= 3:
        teams = _teams(parts[-2])
        if teams:
            away, home = teams
            picked = last
            other = home if picked == away else away
            sport = _sport(ticker, "Sports")
            if yes:
                return f"{picked} wins vs {other} ({sport})"
            return f"{other} wins vs {picked} ({sport})"

    if "SPREAD" in ticker and last:
        team = _leading_alpha(last)
        spread = "".join(ch for ch in last[len(team):] if ch.isdigit() or ch == ".")
        if team and spread:
            if yes:
                return f"{team} wins by {spread} or more (covers spread)"
            return f"{team} loses or wins by less than {spread} (doesn't cover spread)"

    if ("HIGH" in ticker or "LOW" in ticker) and last.startswith("T") and len(last) > 1:
        metric = "High" if "HIGH" in ticker else "Low"
        cmp = "at or above" if yes else "below"
        return f"{metric} temp {cmp} {last[1:]}F"

    if any(marker in ticker for marker in ("PRES", "SENATE", "HOUSE")) and last:
        if yes:
            return f"{last} wins election"
        return f"{last} doesn't win election"

    if any(marker in ticker for marker in ("COMBO", "PARLAY", "MULTI")) and last:
        return f"{'Wins' if yes else 'Loses'} {last} combo/parlay"

    if last and len(last) <= 10 and last.isalnum():
        if yes:
            return f"{last} happens"
        return f"{last} doesn't happen"

    if yes:
        return "YES - check market details"
    return "NO - check market details"


def _leading_alpha(text: str) -> str:
    out = []
    for ch in text:
        if not ch.isalpha():
            break
        out.append(ch)
    return "".join(out)
