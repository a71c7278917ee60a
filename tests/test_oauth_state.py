# Tests for oauth2/state.py
# Created: 2026-10-18

import asyncio
from concurrent.futures import ThreadPoolExecutor

import pytest

from mailoauth.oauth2.state import StateStore


class FakeClock:
    def __init__(self, now: float = 1_000_000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def store(clock):
    return StateStore(ttl=3600, clock=clock)


class TestStateStore:
    @pytest.mark.parametrize("provider", ["gmail", "outlook", "yahoo"])
    def test_state_is_single_use(self, store, provider):
        state = store.generate_state(provider)

        first = store.validate_state(state)
        assert first.valid is True
        assert first.provider == provider
        assert first

        second = store.validate_state(state)
        assert second.valid is False
        assert second.provider is None
        assert not second

    def test_state_token_is_url_safe(self, store):
        state = store.generate_state("gmail")
        assert len(state) >= 43
        assert all(c.isalnum() or c in "-_" for c in state)

    def test_unknown_state_invalid(self, store):
        assert store.validate_state("never-issued").valid is False

    def test_empty_state_invalid(self, store):
        assert store.validate_state("").valid is False

    def test_expired_state_invalid_on_first_use(self, store, clock):
        state = store.generate_state("gmail")
        clock.advance(3601)
        assert store.validate_state(state).valid is False

    def test_expired_state_removed_on_inspection(self, store, clock):
        state = store.generate_state("gmail")
        clock.advance(3601)
        store.validate_state(state)
        assert len(store) == 0
        # Rewinding the clock cannot resurrect it
        clock.advance(-3601)
        assert store.validate_state(state).valid is False

    def test_state_valid_at_ttl_boundary(self, store, clock):
        state = store.generate_state("gmail")
        clock.advance(3600)
        assert store.validate_state(state).valid is True

    def test_sweep_removes_only_expired(self, store, clock):
        old = store.generate_state("gmail")
        clock.advance(3000)
        fresh = store.generate_state("outlook")
        clock.advance(700)

        assert store.sweep() == 1
        assert len(store) == 1
        assert store.validate_state(old).valid is False
        assert store.validate_state(fresh).provider == "outlook"

    def test_sweep_empty(self, store):
        assert store.sweep() == 0

    def test_concurrent_generation_yields_distinct_tokens(self, store):
        def issue(i):
            return store.generate_state(f"p{i % 3}")

        with ThreadPoolExecutor(max_workers=16) as pool:
            states = list(pool.map(issue, range(500)))

        assert len(set(states)) == 500
        assert len(store) == 500

        with ThreadPoolExecutor(max_workers=16) as pool:
            results = list(pool.map(store.validate_state, states))

        assert all(r.valid for r in results)
        assert [r.provider for r in results] == [f"p{i % 3}" for i in range(500)]
        assert len(store) == 0

    def test_concurrent_validation_consumes_once(self, store):
        state = store.generate_state("gmail")
        with ThreadPoolExecutor(max_workers=8) as pool:
            results = list(pool.map(store.validate_state, [state] * 32))
        assert sum(1 for r in results if r.valid) == 1


class TestStateSweeper:
    async def test_background_sweep_runs(self, clock):
        store = StateStore(ttl=10, sweep_interval=0.01, clock=clock)
        store.generate_state("gmail")
        clock.advance(11)

        store.start()
        assert store.running
        for _ in range(100):
            if len(store) == 0:
                break
            await asyncio.sleep(0.01)
        await store.stop()

        assert len(store) == 0
        assert not store.running

    async def test_start_is_idempotent(self, clock):
        store = StateStore(sweep_interval=60, clock=clock)
        store.start()
        task = store._sweep_task
        store.start()
        assert store._sweep_task is task
        await store.stop()

    async def test_stop_without_start(self):
        store = StateStore()
        await store.stop()
        assert not store.running
