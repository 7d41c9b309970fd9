# tests/fake_uci_engine.py
"""
A scripted UCI engine for the analysis session tests.

Run as `python fake_uci_engine.py [options]`. It answers the handshake,
advertises a few options, and replies to `go depth N` with one `info` line per
depth followed by `bestmove`. Every command it receives is appended to the
`--log` file so tests can check what was sent and in which order.
"""
import argparse
import os
import sys
import threading

import chess

PREFERRED_MOVES = ["e2e4", "e7e5", "d2d4", "d7d5"]

OPTIONS = [
    "option name Hash type spin default 16 min 1 max 1024",
    "option name Threads type spin default 1 min 1 max 64",
    "option name MultiPV type spin default 1 min 1 max 500",
]


def parse_args(argv):
    parser = argparse.ArgumentParser()
    parser.add_argument("--log", help="File that receives every command line")
    parser.add_argument("--score", default="cp 35", help="Score reported at every depth, e.g. 'mate 0'")
    parser.add_argument("--cp-step", type=int, default=0, help="Centipawns added to the score per depth")
    parser.add_argument("--hold-at", type=int, help="Stop producing output at this depth until `stop`")
    parser.add_argument("--hold-count", type=int, help="Only hold the first N searches (default: all)")
    parser.add_argument("--stream", action="store_true", help="While held, keep repeating the last info line")
    parser.add_argument("--crash-at", type=int, help="Exit abruptly when reaching this depth")
    parser.add_argument("--currmove", action="store_true", help="Announce a currmove line before each depth")
    parser.add_argument("--multipv", action="store_true", help="Report a worse second line at each depth")
    parser.add_argument("--no-uciok", action="store_true", help="Never complete the handshake")
    return parser.parse_args(argv)


class FakeEngine:
    def __init__(self, args):
        self.args = args
        self.board = chess.Board()
        self.stop_event = threading.Event()
        self.search_thread = None
        self.output_lock = threading.Lock()
        self.searches = 0

    def emit(self, line):
        with self.output_lock:
            sys.stdout.write(line + "\n")
            sys.stdout.flush()

    def log(self, line):
        if self.args.log:
            with open(self.args.log, "a", encoding="utf-8") as f:
                f.write(line + "\n")

    def principal_variation(self):
        board = self.board.copy()
        line = []
        for _ in range(2):
            legal = sorted(move.uci() for move in board.legal_moves)
            if not legal:
                break
            move = next((uci for uci in PREFERRED_MOVES if uci in legal), legal[0])
            line.append(move)
            board.push_uci(move)
        return line

    def score(self, depth):
        kind, value = self.args.score.split()
        if kind == "cp":
            return f"cp {int(value) + depth * self.args.cp_step}"
        return f"{kind} {value}"

    def info_lines(self, depth, pv):
        lines = []
        if self.args.currmove and pv:
            lines.append(f"info depth {depth} currmove {pv[0]} currmovenumber 1")
        pv_text = f" pv {' '.join(pv)}" if pv else ""
        lines.append(f"info depth {depth} seldepth {depth + 2} multipv 1 score {self.score(depth)} "
                     f"nodes {depth * 1000}{pv_text}")
        if self.args.multipv:
            others = sorted(m.uci() for m in self.board.legal_moves if not pv or m.uci() != pv[0])
            if others:
                lines.append(f"info depth {depth} seldepth {depth + 2} multipv 2 score cp -50 "
                             f"nodes {depth * 1000} pv {others[0]}")
        return lines

    def search(self, depth, hold_at):
        pv = self.principal_variation()
        last = depth if hold_at is None else min(depth, hold_at)
        for d in range(1, last + 1):
            if self.stop_event.is_set():
                break
            if self.args.crash_at == d:
                sys.stdout.flush()
                os._exit(3)
            for line in self.info_lines(d, pv):
                self.emit(line)
        if hold_at is not None:
            while not self.stop_event.wait(0.002 if self.args.stream else None):
                for line in self.info_lines(last, pv):
                    self.emit(line)
        self.emit(f"bestmove {pv[0]}" if pv else "bestmove (none)")

    def set_position(self, tokens):
        if tokens[1] == "startpos":
            self.board = chess.Board()
            rest = tokens[2:]
        else:
            self.board = chess.Board(" ".join(tokens[2:8]))
            rest = tokens[8:]
        if rest[:1] == ["moves"]:
            for move in rest[1:]:
                self.board.push_uci(move)

    def finish_search(self):
        if self.search_thread is not None:
            self.stop_event.set()
            self.search_thread.join()
            self.search_thread = None

    def run(self):
        for raw in sys.stdin:
            command = raw.strip()
            if not command:
                continue
            self.log(command)
            tokens = command.split()
            if command == "uci":
                self.emit("id name FakeFish")
                self.emit("id author chess-viewer tests")
                for option in OPTIONS:
                    self.emit(option)
                if not self.args.no_uciok:
                    self.emit("uciok")
            elif command == "isready":
                self.emit("readyok")
            elif tokens[0] == "position":
                self.set_position(tokens)
            elif tokens[0] == "go":
                self.finish_search()
                self.stop_event.clear()
                depth = int(tokens[tokens.index("depth") + 1]) if "depth" in tokens else 1
                self.searches += 1
                held = self.args.hold_count is None or self.searches <= self.args.hold_count
                hold_at = self.args.hold_at if held else None
                self.search_thread = threading.Thread(target=self.search, args=(depth, hold_at), daemon=True)
                self.search_thread.start()
            elif command == "stop":
                self.finish_search()
            elif command == "quit":
                self.finish_search()
                return


if __name__ == "__main__":
    FakeEngine(parse_args(sys.argv[1:])).run()
