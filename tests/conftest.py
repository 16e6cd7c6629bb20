import os

import pytest

from refresher.core.config import settings
from refresher.pipeline.pipeline import Pipeline
from refresher.pipeline.step import Step, StepInput

GAME_TITLES = ("NPUA80662", "BCUS98148")


@pytest.fixture
def emulator_dir(tmp_path):
    """A fake emulator install: <root>/dev_hdd0/game/<title>/USRDIR."""
    root = tmp_path / "rpcs3"
    for title_id in GAME_TITLES:
        (root / "dev_hdd0" / "game" / title_id / "USRDIR").mkdir(parents=True)
    return root


@pytest.fixture(autouse=True)
def override_dir(tmp_path, monkeypatch):
    """Point the custom-plugin lookup at an empty directory for every test."""
    path = tmp_path / "override"
    path.mkdir()
    monkeypatch.setattr(settings, "PATCHWORK_OVERRIDE_DIRECTORY", str(path))
    return path


def fake_step(step_name, *, inputs=(), behaviour=None):
    """
    Build a Step subclass named ``step_name``.

    ``behaviour(step, token)`` is awaited before the step reports completion.
    """

    async def execute(self, token):
        if behaviour is not None:
            await behaviour(self, token)
        self._report_progress(1.0)

    return type(
        step_name,
        (Step,),
        {
            "name": step_name,
            "inputs": tuple(StepInput(id=i) if isinstance(i, str) else i for i in inputs),
            "execute": execute,
        },
    )


def make_pipeline(*factories, setup=None, **kwargs):
    """Build and instantiate a throwaway Pipeline subclass."""
    pipeline_cls = type(
        "TestPipeline",
        (Pipeline,),
        {
            "id": "test-pipeline",
            "name": "Test Pipeline",
            "setup_accessor_step": setup,
            "step_factories": factories,
        },
    )
    return pipeline_cls(**kwargs)


def read_file(path) -> bytes:
    with open(os.fspath(path), "rb") as f:
        return f.read()
