"""
MODULE OVERVIEW:
The state owned by one running checkout server.

WHAT IS HAPPENING HERE:
Instead of module-level singletons, the catalog, the subscriber registry, the dispatcher
and the collaborators are bundled in a `CheckoutContext` that the app factory stores on
`app.state`. Routes receive it through the `get_context` dependency, so every test can
build an isolated server.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone

from starlette.requests import HTTPConnection

from smart_checkout.server.catalog import CatalogStore
from smart_checkout.server.connection_manager import SubscriberRegistry
from smart_checkout.server.dispatcher import BroadcastDispatcher
from smart_checkout.server.feedback import FeedbackLog
from smart_checkout.server.mailer import ReceiptMailer
from smart_checkout.shared.config import Settings
from smart_checkout.shared.events import CatalogChangeBus
from smart_checkout.shared.models import CatalogStats


@dataclass
class CheckoutContext:
    settings: Settings
    catalog: CatalogStore
    registry: SubscriberRegistry
    dispatcher: BroadcastDispatcher
    feedback: FeedbackLog
    mailer: ReceiptMailer
    startup_time: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def stats(self) -> CatalogStats:
        now = datetime.now(timezone.utc)
        return CatalogStats(
            products_stored=len(self.catalog),
            products_visible=len(self.catalog.valid_view()),
            catalog_revision=self.catalog.revision,
            active_sse=self.registry.count("sse"),
            active_ws=self.registry.count("websocket"),
            broadcasts_sent=self.dispatcher.broadcasts_sent,
            subscribers_dropped=self.dispatcher.subscribers_dropped,
            ratings=self.feedback.counts(),
            uptime_s=(now - self.startup_time).total_seconds(),
            server_time=now,
        )


def build_context(settings: Settings, mailer: ReceiptMailer | None = None) -> CheckoutContext:
    bus = CatalogChangeBus()
    catalog = CatalogStore(
        bus,
        weight_threshold=settings.WEIGHT_THRESHOLD_G,
        min_visible_weight=settings.MIN_VISIBLE_WEIGHT_G,
        reject_negative=settings.REJECT_NEGATIVE_VALUES,
    )
    registry = SubscriberRegistry(queue_maxsize=settings.SUBSCRIBER_QUEUE_MAXSIZE)
    dispatcher = BroadcastDispatcher(registry)
    bus.subscribe(dispatcher.on_catalog_change)

    if mailer is None:
        mailer = ReceiptMailer(
            settings.EMAIL_API_URL,
            settings.EMAIL_API_KEY,
            settings.ADMIN_EMAIL,
            timeout_s=settings.EMAIL_HTTP_TIMEOUT_S,
        )

    return CheckoutContext(
        settings=settings,
        catalog=catalog,
        registry=registry,
        dispatcher=dispatcher,
        feedback=FeedbackLog(),
        mailer=mailer,
    )


def get_context(connection: HTTPConnection) -> CheckoutContext:
    # Shared by HTTP routes and WebSocket routes
    return connection.app.state.context
