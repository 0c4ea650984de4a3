# src/normalize/aliases.py — v1
"""Static alias table: canonical player name -> known spellings.

Canonical names use the "Last, First" form. Lookup is done on a
punctuation- and case-insensitive key (see NameNormalizer.lookup_key), so
variants that differ only in spacing, dots or commas need not be listed.
"""

from __future__ import annotations

DEFAULT_ALIASES: dict[str, tuple[str, ...]] = {
    "Fischer, Robert James": (
        "Fischer, Robert J",
        "Fischer, Robert J.",
        "Fischer, R.",
        "Fischer, Bobby",
        "Bobby Fischer",
        "Robert Fischer",
        "Fischer",
        "R. Fischer",
        "Robert J. Fischer",
        "Robert James Fischer",
    ),
    "Kasparov, Garry": (
        "Kasparov, Gary",
        "Kasparov, G.",
        "Kasparov",
        "G. Kasparov",
        "Gary Kasparov",
        "Garry Kasparov",
        "Kasparov Garry",
        "Kasparov, Garri",
    ),
    "Carlsen, Magnus": (
        "Carlsen, M.",
        "Carlsen",
        "Magnus Carlsen",
        "M. Carlsen",
    ),
    "Karpov, Anatoly": (
        "Karpov, A.",
        "Karpov",
        "Anatoly Karpov",
        "A. Karpov",
        "Karpov Anatoly",
        "Karpov, Anatolij",
    ),
    "Kramnik, Vladimir": (
        "Kramnik, V.",
        "Kramnik",
        "Vladimir Kramnik",
        "V. Kramnik",
    ),
    "Anand, Viswanathan": (
        "Anand, V.",
        "Anand",
        "Viswanathan Anand",
        "V. Anand",
        "Vishy Anand",
    ),
    "Tal, Mikhail": (
        "Tal, M.",
        "Tal",
        "Mikhail Tal",
        "M. Tal",
        "Misha Tal",
        "Tal, Mihail",
    ),
    "Petrosian, Tigran": (
        "Petrosian, T.",
        "Petrosian",
        "Tigran Petrosian",
        "T. Petrosian",
        "Petrosian, Tigran V.",
    ),
    "Spassky, Boris": (
        "Spassky, B.",
        "Spassky",
        "Boris Spassky",
        "B. Spassky",
        "Spassky, Boris V.",
    ),
    "Botvinnik, Mikhail": (
        "Botvinnik, M.",
        "Botvinnik",
        "Mikhail Botvinnik",
        "M. Botvinnik",
        "Botvinnik, Mihail",
    ),
    "Smyslov, Vasily": (
        "Smyslov, V.",
        "Smyslov",
        "Vasily Smyslov",
        "V. Smyslov",
    ),
    "Ding, Liren": (
        "Ding Liren",
        "Ding, L.",
        "Liren Ding",
    ),
    "Nepomniachtchi, Ian": (
        "Nepomniachtchi, I.",
        "Nepomniachtchi",
        "Ian Nepomniachtchi",
        "Nepo",
    ),
    # Sisters share a surname: a bare "Polgar" is deliberately absent.
    "Polgar, Judit": (
        "Judit Polgar",
        "Polgar, J.",
    ),
    "Polgar, Susan": (
        "Susan Polgar",
        "Polgar, Zsuzsa",
        "Polgar, S.",
    ),
}
