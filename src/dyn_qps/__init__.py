"""Dyn QPS check - alert when DNS query rates approach the committed allotment.

Quick Start:
    from dyn_qps.check import run_check
    from dyn_qps.models import CheckConfig

    config = CheckConfig.load(
        customer="acme",
        user="monitor",
        password="secret",
        period="week",
        warning=15,
        critical=20,
    )
    result = run_check(config)
    print(result.verdict, result.message)
"""

__version__ = "0.1.0"
