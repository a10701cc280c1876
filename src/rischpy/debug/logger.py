"""See benchmark/benchmark.py for an example usage of the logger.

```
import rischpy as rp
from rischpy.debug.logger import Logger

logger = Logger()

# do some integration as normal...
x = rp.symbols('x')
rp.integrate(rp.log(x) / x, observer=logger)

logger.dump()   # dumps information into integration_log.txt
```
"""

import time
from typing import Dict, List, NamedTuple, Optional

from ..expr import Expr


class Event(NamedTuple):
    stage: str
    message: str
    details: dict
    timestamp: float


class Datum(NamedTuple):
    expr: Expr
    time_spent: float
    events: List[Event]


class Logger:
    """Keeps track of time spent on integration & what each stage did along the way.

    Events are grouped per integrand: everything logged before a "done" event belongs to the
    integrand named in it.
    """

    _data: Dict[str, Datum] = None

    def __init__(self):
        self._data = {}
        self._pending: List[Event] = []

    def log(self, stage: str, message: str, **details):
        """Log an integration event.

        stage: which part of the integrator is talking, ex. "rewrite", "tower", "level", "done"
        message: what happened
        details: anything else worth keeping. the "done" event carries integrand & time_spent.
        """
        event = Event(stage, message, details, time.time())
        if stage != "done":
            self._pending.append(event)
            return
        expr = details.get("integrand")
        self._data[str(expr)] = Datum(expr, details.get("time_spent", 0.0), self._pending + [event])
        self._pending = []

    @property
    def data(self) -> Dict[str, Datum]:
        return self._data

    def sort(self):
        """sorts the data by time spent on each integral, from most time to least time."""
        self._data = dict(sorted(self._data.items(), key=lambda x: x[1].time_spent, reverse=True))

    def slowest(self) -> Optional[Datum]:
        if not self._data:
            return None
        return max(self._data.values(), key=lambda d: d.time_spent)

    def dump(self, path: str = "integration_log.txt"):
        self.sort()

        with open(path, "w") as f:
            f.write("Integrand: time taken (s)")
            f.write("\n\n")
            for k, v in self._data.items():
                f.write(f"{k}: {v.time_spent}\n")

            # For the one with the most time spent, print every event.
            slowest = self.slowest()
            if slowest is None:
                return
            f.write("\n\n\n")
            f.write("Events of the integral with most time spent: \n")
            for event in slowest.events:
                f.write(f"[{event.stage}] {event.message}\n")
