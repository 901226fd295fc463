from marketplace.data.ordering.order_activity_log import OrderActivityLog


def append_activity(order, actor, action: str, message: str) -> OrderActivityLog:
    """Append one audit entry to the order; entries are never edited afterwards"""
    entry = OrderActivityLog(
        actor_id=actor.id if actor is not None else None,
        actor_role=actor.role if actor is not None else None,
        action=action,
        message=message,
    )
    order.activity_logs.append(entry)
    return entry
