import argparse
import os

from eventrelay.core import log
from eventrelay.core.dispatcher import Dispatcher
from eventrelay.core.event import Event
from eventrelay.core.metrics import force_emit, start_exporter, stop_exporter
from eventrelay.wire_config import build_from_yaml


class OrderPlaced(Event):
    pass


class Audit:
    def __init__(self):
        self.seen = []

    def get_subscribed_events(self):
        return {"order.*": "record", "order_placed": ["record", "guard"]}

    def record(self, payload, dispatcher):
        self.seen.append(payload)
        return "recorded"

    def guard(self, event, dispatcher):
        if event.get_arguments("total") > 1000:
            event.stop_propagation()
        return "guarded"


def on_order(event, dispatcher):
    return f"order {event.get_subject()} total={event.get_arguments('total')}"


def main():
    ap = argparse.ArgumentParser(description="eventrelay demo")
    ap.add_argument("--wiring", help="YAML wiring file (listeners/subscribers)")
    ap.add_argument("--event", default=None, help="event name to dispatch instead of OrderPlaced")
    ap.add_argument("--total", type=float, default=250.0)
    args = ap.parse_args()

    os.environ.setdefault("LOG_LEVEL", "DEBUG")
    log.setup()
    lg = log.get("demo")
    start_exporter(interval_sec=float(os.getenv("METRICS_INTERVAL", "5")),
                   json_mode=(os.getenv("LOG_JSON", "0") == "1"))

    d = build_from_yaml(args.wiring) if args.wiring else Dispatcher()
    d.subscribe(Audit())
    d.listen(OrderPlaced.event_name, on_order)

    try:
        if args.event:
            results = d.dispatch(args.event, {"total": args.total})
        else:
            results = d.dispatch(OrderPlaced("A-1001", {"total": args.total}))
        lg.info("results=%s", results)
    finally:
        stop_exporter()
        force_emit()


if __name__ == "__main__":
    main()
