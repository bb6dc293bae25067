import logging

from hospital_api import database
from hospital_api.core import scheduler
from hospital_api.seed import seed


def test_check_low_stock_logs_each_item(db, make_item, monkeypatch, caplog):
    make_item(name="Gauze", quantity=2, reorder_level=10)
    make_item(name="Syringes", quantity=100, reorder_level=10)
    monkeypatch.setattr(database, "SessionLocal", lambda: db)

    with caplog.at_level(logging.WARNING, logger="hospital_api.core.scheduler"):
        count = scheduler.check_low_stock()

    assert count == 1
    assert "Low stock: Gauze" in caplog.text
    assert "Syringes" not in caplog.text


def test_start_scheduler_registers_job(monkeypatch):
    started = []
    jobs = {}
    monkeypatch.setattr(scheduler.scheduler, "start", lambda: started.append(True))
    monkeypatch.setattr(scheduler.scheduler, "add_job",
                        lambda func, trigger, id, replace_existing: jobs.setdefault(id, func))

    scheduler.start_scheduler()

    assert started == [True]
    assert jobs == {"check_low_stock": scheduler.check_low_stock}


def test_seed_is_idempotent(db):
    first = seed(db)
    second = seed(db)

    assert first > 0
    assert second == 0
