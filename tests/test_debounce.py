import asyncio

from cssg.debounce import BuildTrigger, DebouncedTimer


def test_debounced_timer_restarts_on_arm():
    async def scenario():
        fired = []
        timer = DebouncedTimer(0.1, lambda: fired.append(True))
        timer.arm()
        await asyncio.sleep(0.05)
        timer.arm()
        await asyncio.sleep(0.05)
        assert fired == []
        assert timer.pending
        await asyncio.sleep(0.2)
        assert fired == [True]
        assert not timer.pending

    asyncio.run(scenario())


def test_debounced_timer_cancel():
    async def scenario():
        fired = []
        timer = DebouncedTimer(0.02, lambda: fired.append(True))
        timer.arm()
        timer.cancel()
        await asyncio.sleep(0.05)
        return fired

    assert asyncio.run(scenario()) == []


def test_burst_collapses_into_one_build():
    async def scenario():
        builds = []

        async def run_build(changed):
            builds.append(changed)

        trigger = BuildTrigger(run_build, quiet_period=0.1)
        trigger.notify({"a.jinja"})
        await asyncio.sleep(0.01)
        trigger.notify({"b.css", "a.jinja"})
        trigger.notify({"c.md"})
        assert trigger.pending == frozenset({"a.jinja", "b.css", "c.md"})
        await asyncio.sleep(0.3)
        await trigger.wait_idle()
        return builds

    assert asyncio.run(scenario()) == [frozenset({"a.jinja", "b.css", "c.md"})]


def test_spaced_changes_build_separately():
    async def scenario():
        builds = []

        async def run_build(changed):
            builds.append(changed)

        trigger = BuildTrigger(run_build, quiet_period=0.02)
        trigger.notify({"a.jinja"})
        await asyncio.sleep(0.2)
        await trigger.wait_idle()
        trigger.notify({"b.jinja"})
        await asyncio.sleep(0.2)
        await trigger.wait_idle()
        return builds

    assert asyncio.run(scenario()) == [frozenset({"a.jinja"}), frozenset({"b.jinja"})]


def test_changes_during_build_are_dropped(capsys):
    async def scenario():
        builds = []
        release = asyncio.Event()

        async def run_build(changed):
            builds.append(changed)
            await release.wait()

        trigger = BuildTrigger(run_build, quiet_period=0.01)
        trigger.notify({"a.jinja"})
        await asyncio.sleep(0.05)
        assert trigger.building

        trigger.notify({"b.jinja"})
        assert trigger.pending == frozenset()

        release.set()
        await trigger.wait_idle()
        assert not trigger.building
        await asyncio.sleep(0.05)
        return builds

    assert asyncio.run(scenario()) == [frozenset({"a.jinja"})]
    assert "Build in progress; ignoring change notification." in capsys.readouterr().out


def test_fire_while_building_is_skipped(capsys):
    async def scenario():
        builds = []
        release = asyncio.Event()

        async def run_build(changed):
            builds.append(changed)
            await release.wait()

        trigger = BuildTrigger(run_build, quiet_period=1)
        trigger.notify({"a.jinja"})
        trigger.fire()
        await asyncio.sleep(0)
        trigger.fire()
        release.set()
        await trigger.wait_idle()
        trigger.cancel()
        return builds

    assert asyncio.run(scenario()) == [frozenset({"a.jinja"})]
    assert "Build already in progress; skipping rebuild." in capsys.readouterr().out


def test_building_flag_resets_after_failure():
    async def scenario():
        async def run_build(changed):
            raise RuntimeError("boom")

        trigger = BuildTrigger(run_build, quiet_period=0.01)
        trigger.notify({"a.jinja"})
        await asyncio.sleep(0.05)
        try:
            await trigger.wait_idle()
        except RuntimeError:
            pass
        return trigger.building

    assert asyncio.run(scenario()) is False


def test_fire_without_pending_paths_is_noop():
    async def scenario():
        builds = []

        async def run_build(changed):
            builds.append(changed)

        trigger = BuildTrigger(run_build)
        trigger.fire()
        await trigger.wait_idle()
        return builds, trigger.building

    assert asyncio.run(scenario()) == ([], False)
