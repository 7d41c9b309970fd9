# tests/conftest.py
import asyncio
import sys
from pathlib import Path
from typing import Callable, List

import chess.engine
import pytest

from chess_viewer.config.settings import AnalysisSettings, EngineSettings
from chess_viewer.services.analysis_session import EngineAnalysisSession

FAKE_ENGINE = Path(__file__).with_name("fake_uci_engine.py")

FISCHER_SPASSKY_1992 = """[Event "F/S Return Match"]
[Site "Belgrade, Serbia JUG"]
[Date "1992.11.04"]
[Round "29"]
[White "Fischer, Robert J."]
[Black "Spassky, Boris V."]
[Result "1/2-1/2"]

1. e4 e5 2. Nf3 Nc6 3. Bb5 {This opening is called the Ruy Lopez.} 3... a6
4. Ba4 Nf6 5. O-O Be7 6. Re1 b5 7. Bb3 d6 8. c3 O-O 9. h3 Nb8 10. d4 Nbd7
11. c4 c6 12. cxb5 axb5 13. Nc3 Bb7 14. Bg5 b4 15. Nb1 h6 16. Bh4 c5 17. dxe5
Nxe4 18. Bxe7 Qxe7 19. exd6 Qf6 20. Nbd2 Nxd6 21. Nc4 Nxc4 22. Bxc4 Nb6
23. Ne5 Rae8 24. Bxf7+ Rxf7 25. Nxf7 Rxe1+ 26. Qxe1 Kxf7 27. Qe3 Qg5 28. Qxg5
hxg5 29. b3 Ke6 30. a3 Kd6 31. axb4 cxb4 32. Ra5 Nd5 33. f3 Bc8 34. Kf2 Bf5
35. Ra7 g6 36. Ra6+ Kc5 37. Ke1 Nf4 38. g3 Nxh3 39. Kd2 Kb5 40. Rd6 Kc5 41. Ra6
Nf2 42. g4 Bd3 43. Re6 1/2-1/2
"""


def fake_engine_command(*args: str) -> List[str]:
    """Command line starting the scripted engine in `fake_uci_engine.py`."""
    return [sys.executable, str(FAKE_ENGINE), *args]


class EngineLog:
    """Reads back the commands the scripted engine has received."""

    def __init__(self, path: Path):
        self.path = path

    @property
    def commands(self) -> List[str]:
        if not self.path.exists():
            return []
        return self.path.read_text(encoding="utf-8").splitlines()

    def since(self, command: str) -> List[str]:
        """The commands after the last occurrence of `command`."""
        commands = self.commands
        last = len(commands) - 1 - commands[::-1].index(command)
        return commands[last + 1:]


async def wait_until(predicate: Callable[[], bool], timeout: float = 5.0) -> None:
    """Yields to the event loop until `predicate` holds."""
    async def _poll() -> None:
        while not predicate():
            await asyncio.sleep(0.005)
    await asyncio.wait_for(_poll(), timeout)


@pytest.fixture
def engine_log(tmp_path) -> EngineLog:
    return EngineLog(tmp_path / "engine.log")


@pytest.fixture
def analysis_settings() -> AnalysisSettings:
    return AnalysisSettings(depth=5, timeout_s=5.0, debounce_s=0.0)


@pytest.fixture
def engine_settings() -> EngineSettings:
    return EngineSettings(options={"Hash": 32}, init_timeout_s=5.0, sync_timeout_s=2.0)


@pytest.fixture
async def make_session(engine_log, engine_settings, analysis_settings):
    """
    Builds sessions on the scripted engine. Positional arguments are passed to
    `fake_uci_engine.py`; every session is closed after the test.
    """
    sessions = []

    def _make(*engine_args, on_crash=None, engine=None, analysis=None) -> EngineAnalysisSession:
        command = fake_engine_command("--log", str(engine_log.path), *engine_args)

        async def factory() -> chess.engine.UciProtocol:
            _, protocol = await chess.engine.popen_uci(command)
            return protocol

        session = EngineAnalysisSession(
            factory, engine or engine_settings, analysis or analysis_settings, on_crash=on_crash
        )
        sessions.append(session)
        return session

    yield _make
    for session in sessions:
        await session.close()


@pytest.fixture
def fischer_spassky() -> str:
    return FISCHER_SPASSKY_1992


@pytest.fixture
def until():
    return wait_until
