import math

from fastapi import Query


class PageParams:
    def __init__(self, page: int = Query(1, ge=1), limit: int = Query(10, ge=1, le=100)):
        self.page = page
        self.limit = limit


def paginate(query, params: PageParams):
    """Return one page of ``query`` and the pagination block for the envelope."""
    total_results = query.order_by(None).count()
    rows = query.offset((params.page - 1) * params.limit).limit(params.limit).all()
    return rows, {
        "current": params.page,
        "total": math.ceil(total_results / params.limit),
        "results": len(rows),
        "total_results": total_results,
    }
