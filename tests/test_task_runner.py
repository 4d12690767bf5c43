from fabric_studio.services.task_runner import TaskRunner


class DeferredSpawn:
    """Запоминает задачи и выполняет их по команде теста."""
    def __init__(self):
        self.pending = []

    def __call__(self, fn):
        self.pending.append(fn)

    def run_all(self):
        while self.pending:
            self.pending.pop(0)()


def test_success_callback_runs_on_drain():
    spawn = DeferredSpawn()
    runner = TaskRunner(spawn=spawn)
    seen = []

    assert runner.submit("export", lambda: 42, on_success=seen.append)
    assert runner.is_busy("export")
    spawn.run_all()
    assert seen == []  # not delivered until the UI thread drains

    assert runner.drain() == 1
    assert seen == [42]
    assert not runner.is_busy("export")


def test_second_submit_for_same_key_is_rejected():
    spawn = DeferredSpawn()
    runner = TaskRunner(spawn=spawn)

    assert runner.submit("crop", lambda: 1)
    assert not runner.submit("crop", lambda: 2)
    assert runner.submit("export", lambda: 3)
    assert len(spawn.pending) == 2


def test_error_is_delivered_to_error_callback():
    runner = TaskRunner(spawn=lambda fn: fn())
    errors = []

    def boom():
        raise ValueError("bad")

    runner.submit("generate", boom, on_error=errors.append)
    runner.drain()
    assert isinstance(errors[0], ValueError)
    assert not runner.is_busy("generate")


def test_key_is_free_again_after_completion():
    runner = TaskRunner(spawn=lambda fn: fn())
    runner.submit("crop", lambda: None)
    runner.drain()
    assert runner.submit("crop", lambda: None)


def test_attach_schedules_pump():
    class Widget:
        def __init__(self):
            self.scheduled = []

        def after(self, ms, fn):
            self.scheduled.append((ms, fn))

    widget = Widget()
    runner = TaskRunner(spawn=lambda fn: fn())
    seen = []
    runner.submit("export", lambda: "ok", on_success=seen.append)
    runner.attach(widget, interval_ms=10)

    ms, pump = widget.scheduled.pop()
    pump()
    assert seen == ["ok"]
    assert widget.scheduled[0][0] == 10
