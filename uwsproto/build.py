"""Builds the example programs with the compiler chosen by the environment."""

from __future__ import annotations

import argparse
import os
import subprocess
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import List, Mapping, Optional, Sequence

EXAMPLE_FILES = (
    "SecureGzipFileServer", "Precompress", "EchoBody", "HelloWorldThreaded",
    "Http3Server", "Broadcast", "HelloWorld", "Crc32", "ServerName",
    "EchoServer", "BroadcastingEchoServer", "UpgradeSync", "UpgradeAsync",
    "ParameterRoutes",
)

_BASE_CXXFLAGS = (
    " -march=native -O3 -Wpedantic -Wall -Wextra -Wsign-conversion -Wconversion"
    " -std=c++2b -Isrc -IuSockets/src"
)


@dataclass
class BuildFlags:
    """Compilers, flags and output suffix for a build."""

    cc: str = "cc"
    cxx: str = "g++"
    cflags: str = ""
    cxxflags: str = ""
    ldflags: str = ""
    exec_suffix: str = ""


def env_is(env: Mapping[str, str], name: str, target: str) -> bool:
    """Whether ``name`` is set in ``env`` to exactly ``target``."""
    return env.get(name) == target


def build_flags(env: Optional[Mapping[str, str]] = None) -> BuildFlags:
    """Work out the build flags from ``env`` (the process environment by default)."""
    if env is None:
        env = os.environ

    cxxflags = env.get("CXXFLAGS", "") + _BASE_CXXFLAGS
    cflags = env.get("CFLAGS", "")
    ldflags = env.get("LDFLAGS", "") + " uSockets/*.o"

    if env_is(env, "WITH_LIBDEFLATE", "1"):
        ldflags += " libdeflate/libdeflate.a"
        cxxflags += " -DUWS_USE_LIBDEFLATE -I libdeflate"

    if not env_is(env, "WITH_LTO", "0"):
        cxxflags += " -flto=auto"

    if not env_is(env, "WITH_ZLIB", "0"):
        ldflags += " -lz"
    else:
        cxxflags += " -DUWS_NO_ZLIB"

    if env_is(env, "WITH_PROXY", "1"):
        cxxflags += " -DUWS_WITH_PROXY"

    if env_is(env, "WITH_QUIC", "1"):
        cxxflags += " -DLIBUS_USE_QUIC"
        ldflags += " -pthread -lz -lm uSockets/lsquic/src/liblsquic/liblsquic.a"

    if env_is(env, "WITH_BORINGSSL", "1"):
        cflags += " -I uSockets/boringssl/include -pthread -DLIBUS_USE_OPENSSL"
        ldflags += (
            " -pthread uSockets/boringssl/build/ssl/libssl.a"
            " uSockets/boringssl/build/crypto/libcrypto.a"
        )
    elif env_is(env, "WITH_OPENSSL", "1"):
        ldflags += " -lssl -lcrypto"
    elif env_is(env, "WITH_WOLFSSL", "1"):
        ldflags += " -L/usr/local/lib -lwolfssl"

    if env_is(env, "WITH_LIBUV", "1"):
        ldflags += " -luv"

    if env_is(env, "WITH_ASIO", "1"):
        cxxflags += " -pthread"
        ldflags += " -lpthread"

    if env_is(env, "WITH_ASAN", "1"):
        cxxflags += " -fsanitize=address -g"
        ldflags += " -lasan"

    return BuildFlags(
        cc=env.get("CC") or "cc" if "CC" in env else "cc",
        cxx=env.get("CXX") if "CXX" in env else "g++",
        cflags=cflags,
        cxxflags=cxxflags,
        ldflags=ldflags,
        exec_suffix=env.get("EXEC_SUFFIX", ""),
    )


def example_commands(flags: BuildFlags) -> List[str]:
    """One compile command per example program."""
    return [
        f"{flags.cxx} {flags.cxxflags} examples/{name}.cpp {flags.ldflags} -o {name}{flags.exec_suffix}"
        for name in EXAMPLE_FILES
    ]


def run(command: str) -> int:
    """Echo and run a shell command; returns its exit status."""
    print(f"--> {command}\n")
    return subprocess.run(command, shell=True).returncode


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Command entry point: build the named target."""
    parser = argparse.ArgumentParser(prog="build", description="Build the examples.")
    parser.add_argument("target", help="examples, capi, clean, install or all")
    args = parser.parse_args(argv)

    if args.target == "examples":
        commands = example_commands(build_flags())
        with ThreadPoolExecutor() as pool:
            statuses = list(pool.map(run, commands))
        if any(statuses):
            return 255
    elif args.target in ("capi", "clean", "install", "all"):
        print(f"{args.target} target does nothing yet")
    return 0