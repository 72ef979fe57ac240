from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional

from rich.console import Console
from rich.panel import Panel
from rich.text import Text

from src.core.web3_utils import format_number

_LEVELS = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warning": logging.WARNING,
    "error": logging.ERROR,
}


def _ts() -> str:
    return datetime.now().strftime("%H:%M:%S")


def _usd(x: float) -> str:
    return f"${x:,.2f}"


@dataclass
class ConsoleLogger:
    log_dir: str = "logs"
    log_file: str = "server.log"
    log_level: str = "info"

    console: Console = field(default_factory=lambda: Console(encoding="utf-8"), init=False)
    file_logger: logging.Logger = field(default_factory=lambda: logging.getLogger("trade_calculator"), init=False)

    def __post_init__(self) -> None:
        os.makedirs(self.log_dir, exist_ok=True)

        level = _LEVELS.get(self.log_level.strip().lower(), logging.INFO)
        self.file_logger.setLevel(level)
        self.file_logger.propagate = False
        self.file_logger.handlers.clear()

        fh = logging.FileHandler(
            os.path.join(self.log_dir, self.log_file),
            encoding='utf-8'
        )
        fh.setLevel(level)
        fh.setFormatter(logging.Formatter("%(asctime)s | %(levelname)s | %(message)s"))
        self.file_logger.addHandler(fh)

    def _log(self, message: str, *, level: int = logging.INFO, style: Optional[str] = None) -> None:
        if level < self.file_logger.level:
            return
        prefix = f"[{_ts()}] "
        if style:
            self.console.print(prefix + message, style=style)
        else:
            self.console.print(prefix + message)
        self.file_logger.log(level, message)

    def log_startup(self, host: str, port: int, environment: str) -> None:
        title = Text("TRADING CALCULATOR BACKEND", style="bold cyan")
        self.console.print(Panel(title, expand=False, border_style="cyan"))
        base = f"http://{'localhost' if host in {'0.0.0.0', ''} else host}:{port}"
        self._log(f"🎯 Server running on {base}", style="bold green")
        self._log(f"📊 Environment: {environment}")
        self._log(f"⏰ Started at: {datetime.now().isoformat()}")
        self._log(f"🔗 Health check: {base}/api/health")
        self._log(f"💹 Trade API: {base}/api/trades/calculate")

    def log_trade_calculated(self, currency_pair: str, profit: float, loss: float, ratio: float) -> None:
        self._log(
            f"🧮 {currency_pair} | profit={_usd(profit)} loss={_usd(loss)} R:R={ratio:.4f}",
            level=logging.DEBUG,
        )

    def log_session_saved(self, wallet_address: str) -> None:
        self._log(f"✅ Trading session saved for wallet: {wallet_address}", style="green")

    def log_price(self, currency_pair: str, price: float, source: str) -> None:
        self._log(f"✅ Price from {source}: {currency_pair}={format_number(price, decimals=4)}", style="cyan")

    def log_source_failed(self, source: str, error: str) -> None:
        self.log_warning(f"{source} failed: {error}")

    def log_request_rejected(self, path: str, reasons: list[str]) -> None:
        self._log(f"🚫 {path} rejected: {'; '.join(reasons)}", level=logging.DEBUG, style="yellow")

    def log_info(self, message: str) -> None:
        self._log(message)

    def log_warning(self, message: str) -> None:
        self._log(f"⚠️ {message}", level=logging.WARNING, style="yellow")

    def log_error(self, message: str) -> None:
        self._log(f"❌ {message}", level=logging.ERROR, style="bold red")
