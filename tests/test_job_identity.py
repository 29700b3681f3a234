from __future__ import annotations

import re

from commons import generate_job_id

JOB_ID = re.compile(r"^job_\d+_[a-z0-9]+$")


def test_job_id_shape():
    assert JOB_ID.match(generate_job_id())


def test_job_ids_do_not_collide():
    ids = {generate_job_id() for _ in range(500)}
    assert len(ids) == 500
