import logging
import uuid

from django.core.files.base import ContentFile
from django.db import transaction
from django.db.models import Count

from apps.audit.services import record_audit
from apps.common.exceptions import ForbiddenError, ResourceNotFoundError, ServiceError
from apps.quotations.services import scoped_quotations
from apps.visits.models import Visit, VisitAssignment, VisitImage, VisitStatus
from apps.visits.transitions import plan_transition

logger = logging.getLogger(__name__)


@transaction.atomic
def create_visit(*, actor, data):
    quotation = scoped_quotations(actor).filter(pk=data["quotationId"]).first()
    if quotation is None:
        raise ResourceNotFoundError("Quotation not found")

    visit = Visit.objects.create(
        quotation=quotation,
        date=data["date"],
        time=data["time"],
        location=data["location"],
        location_link=data["locationLink"],
        notes=data["notes"],
        created_by=actor,
    )
    VisitAssignment.objects.bulk_create(
        [
            VisitAssignment(
                visit=visit,
                visitor=entry["visitorId"],
                visitor_name=entry["visitorName"] or entry["visitorId"].display_name,
            )
            for entry in data["visitors"]
        ]
    )
    record_audit(
        actor=actor,
        action="visits.visit.create",
        entity_type="visit",
        entity_id=visit.id,
        payload={"quotation_id": quotation.id, "visitor_ids": [entry["visitorId"].pk for entry in data["visitors"]]},
    )
    logger.info("Visit %s scheduled for quotation %s on %s %s", visit.id, quotation.id, visit.date, visit.time)
    return visit


def delete_visit(visit, actor):
    record_audit(
        actor=actor,
        action="visits.visit.delete",
        entity_type="visit",
        entity_id=visit.id,
        payload={"quotation_id": visit.quotation_id, "status": visit.status},
    )
    visit.delete()


def transition_visit(visit, name, payload, actor):
    if not visit.is_assigned(actor):
        logger.warning("Visit %s: %s refused for unassigned user %s", visit.id, name, actor.username)
        raise ForbiddenError("Only an assigned visitor can update this visit")

    try:
        plan = plan_transition(visit.status, name, payload)
    except ServiceError:
        logger.warning("Visit %s: %s rejected from status %s", visit.id, name, visit.status)
        raise

    with transaction.atomic():
        locked = Visit.objects.select_for_update().get(pk=visit.pk)
        if locked.status != plan.source:
            plan = plan_transition(locked.status, name, payload)
        for field, value in plan.changes.items():
            setattr(locked, field, value)
        locked.save()
        for content, extension in plan.images:
            image = VisitImage(visit=locked)
            image.image.save(f"{locked.id}-{uuid.uuid4().hex[:8]}.{extension}", ContentFile(content), save=True)
        record_audit(
            actor=actor,
            action=f"visits.visit.{name}",
            entity_type="visit",
            entity_id=locked.id,
            payload={"from": plan.source, "to": plan.transition.target},
        )
    logger.info("Visit %s %s: %s -> %s by %s", locked.id, name, plan.source, locked.status, actor.username)
    return locked


def visit_status_summary(quotations):
    summary = {}
    for quotation in quotations:
        visits = list(Visit.objects.filter(quotation=quotation).latest_first().values("status", "date", "time"))
        latest = visits[0] if visits else None
        summary[quotation.id] = {
            "quotationId": quotation.id,
            "currentStatus": latest["status"] if latest else None,
            "latestVisitDate": latest["date"] if latest else None,
            "latestVisitTime": latest["time"] if latest else None,
            "visitCount": len(visits),
        }
    return summary


def status_counts(queryset):
    counts = {choice: 0 for choice in VisitStatus.values}
    for row in queryset.values("status").annotate(total=Count("id")).order_by():
        counts[row["status"]] = row["total"]
    counts["total"] = sum(counts[choice] for choice in VisitStatus.values)
    return counts
