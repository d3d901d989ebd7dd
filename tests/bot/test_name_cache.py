from __future__ import annotations

import threading

from yip.bot.name_cache import NameCache, normalize_mac


def test_normalize_mac_is_idempotent_and_case_insensitive() -> None:
    assert normalize_mac("aa:bb:cc:dd:ee:ff") == "AA:BB:CC:DD:EE:FF"
    assert normalize_mac(normalize_mac(" aa:Bb:cc:dd:ee:ff ")) == "AA:BB:CC:DD:EE:FF"


def test_lookup_of_unknown_mac_is_empty() -> None:
    assert NameCache().lookup("11:22:33:44:55:66") == ""


def test_lookup_ignores_case() -> None:
    cache = NameCache()
    cache.remember("aa:bb:cc:dd:ee:ff", "N")

    assert cache.lookup("AA:BB:CC:DD:EE:FF") == "N"
    assert cache.lookup("aa:bb:cc:dd:ee:ff") == "N"


def test_empty_name_never_erases_known_name() -> None:
    cache = NameCache()
    cache.remember("11:22:33:44:55:66", "X")
    cache.remember("11:22:33:44:55:66", "")
    cache.remember("11:22:33:44:55:66", "   ")

    assert cache.lookup("11:22:33:44:55:66") == "X"


def test_empty_name_is_not_stored() -> None:
    cache = NameCache()
    cache.remember("11:22:33:44:55:66", "")
    assert len(cache) == 0


def test_fresher_name_overwrites() -> None:
    cache = NameCache()
    cache.remember("11:22:33:44:55:66", "phone")
    cache.remember("11:22:33:44:55:66", "work phone")
    assert cache.lookup("11:22:33:44:55:66") == "work phone"


def test_concurrent_writers() -> None:
    cache = NameCache()

    def writer(n: int) -> None:
        for i in range(100):
            cache.remember(f"00:00:00:00:{n:02x}:{i:02x}", f"dev-{n}-{i}")

    threads = [threading.Thread(target=writer, args=(n,)) for n in range(8)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert len(cache) == 800
    assert cache.lookup("00:00:00:00:07:63") == "dev-7-99"
