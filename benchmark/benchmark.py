import statistics
import sys
import time

import rischpy as rp
from rischpy.debug.logger import Logger

e = rp.e

x = rp.symbols("x")

# All are taken from tests.
BENCHMARKING_SUITE = [
    x**3 + 2 * x,
    (2 * x - 5) ** 10,
    (x + 8) / (x * (x + 6)),
    (x - 5) / (-2 * x + 2),
    (x**2 + 1) / (x**2 - 1) ** 2,
    1 / (x**2 + 1),
    1 / (x**3 + x),
    rp.log(x),
    rp.log(x + 6) / x**2,
    1 / (x * rp.log(x)),
    6 * e**x,
    x * e ** (-x),
    e**x / (1 + e**x),
    x * rp.exp(x**2),
    rp.exp(x) * rp.log(x) + rp.exp(x) / x,
    rp.sinh(x),
    rp.cos(x) ** 2,
    rp.sin(2 * x) / rp.cos(2 * x),
    x * rp.sin(x),
    rp.exp(x**2),
]


def run(observer=None):
    for integrand in BENCHMARKING_SUITE:
        rp.integrate(integrand, x, observer=observer)


if "--log" in sys.argv:
    logger = Logger()
    run(logger)
    logger.dump()
    sys.exit()


time_taken = []
for _ in range(10):
    start = time.time()

    ### CODE IN BETWEEN THESE LINES IS PROFILED ###

    run()

    ### CODE IN BETWEEN THESE LINES IS PROFILED ###

    end = time.time()
    time_taken.append(end - start)


print(
    f"Time taken: {statistics.mean(time_taken)}, averaged across {len(time_taken)} runs with stdev {statistics.stdev(time_taken)}"
)
