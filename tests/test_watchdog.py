from __future__ import annotations

import asyncio

from speech.watchdog import SilenceWatchdog

TIMEOUT = 0.05


def _run(coro):
    return asyncio.run(coro)


def test_fires_once_after_timeout():
    async def scenario():
        calls: list[bool] = []
        watchdog = SilenceWatchdog(calls.append, timeout_s=TIMEOUT)
        watchdog.start()
        await asyncio.sleep(TIMEOUT * 3)
        return calls, watchdog.silence_count

    calls, count = _run(scenario())
    assert calls == [False]
    assert count == 1


def test_resets_push_the_deadline_back():
    async def scenario():
        calls: list[bool] = []
        watchdog = SilenceWatchdog(calls.append, timeout_s=TIMEOUT)
        watchdog.start()
        for _ in range(3):
            await asyncio.sleep(TIMEOUT * 0.6)
            watchdog.reset()
        before = list(calls)
        await asyncio.sleep(TIMEOUT * 2)
        return before, calls

    before, after = _run(scenario())
    assert before == []
    assert after == [False]


def test_stop_cancels_and_reset_while_stopped_is_ignored():
    async def scenario():
        calls: list[bool] = []
        watchdog = SilenceWatchdog(calls.append, timeout_s=TIMEOUT)
        watchdog.start()
        watchdog.stop()
        watchdog.reset()
        await asyncio.sleep(TIMEOUT * 2)
        return calls, watchdog.armed

    calls, armed = _run(scenario())
    assert calls == []
    assert armed is False


def test_repeated_flag_after_consecutive_silences():
    async def scenario():
        calls: list[bool] = []
        watchdog = SilenceWatchdog(calls.append, timeout_s=TIMEOUT, max_silence_count=2)
        watchdog.start()
        await asyncio.sleep(TIMEOUT * 1.5)
        watchdog.reset()
        await asyncio.sleep(TIMEOUT * 1.5)
        repeated = list(calls)
        watchdog.start()
        return repeated, watchdog.silence_count

    repeated, count_after_restart = _run(scenario())
    assert repeated == [False, True]
    assert count_after_restart == 0
