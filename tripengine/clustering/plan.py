"""
City plan editing.

Every function returns a new ``CityPlan``; the input plan is never mutated.
Any membership change goes through ``with_stats`` so a cluster's centroid
and stats always describe its current members.
"""
from __future__ import annotations

import logging

from ..config import DEFAULT_ENGINE_CONFIG, EngineConfig
from .auto import (
    find_best_cluster,
    new_cluster_id,
    order_items_for_day,
    should_reorder_after_add,
    with_stats,
)
from .models import CityPlan, Cluster, ClusterAssignment, PlanItem

logger = logging.getLogger(__name__)


def _replace_cluster(plan: CityPlan, updated: Cluster) -> CityPlan:
    clusters = [updated if c.id == updated.id else c for c in plan.clusters]
    return plan.model_copy(update={"clusters": clusters})


def _require_cluster(plan: CityPlan, cluster_id: str) -> Cluster:
    cluster = plan.cluster(cluster_id)
    if cluster is None:
        raise KeyError(f"Unknown cluster {cluster_id!r} in plan {plan.id!r}")
    return cluster


def _without_item(plan: CityPlan, item_id: str) -> tuple[CityPlan, PlanItem | None]:
    removed: PlanItem | None = None
    clusters = []
    for cluster in plan.clusters:
        kept = [i for i in cluster.items if i.id != item_id]
        if len(kept) != len(cluster.items):
            removed = next(i for i in cluster.items if i.id == item_id)
            cluster = with_stats(cluster, kept)
        clusters.append(cluster)
    unclustered = [i for i in plan.unclustered if i.id != item_id]
    if removed is None and len(unclustered) != len(plan.unclustered):
        removed = next(i for i in plan.unclustered if i.id == item_id)
    return plan.model_copy(update={"clusters": clusters, "unclustered": unclustered}), removed


def create_cluster(
    plan: CityPlan,
    name: str,
    items: list[PlanItem] | None = None,
    description: str | None = None,
) -> tuple[CityPlan, Cluster]:
    cluster = with_stats(
        Cluster(id=new_cluster_id(), name=name, description=description), items or []
    )
    return plan.model_copy(update={"clusters": [*plan.clusters, cluster]}), cluster


def add_item(
    plan: CityPlan,
    item: PlanItem,
    config: EngineConfig = DEFAULT_ENGINE_CONFIG,
) -> tuple[CityPlan, ClusterAssignment]:
    """
    Auto-cluster ``item`` into ``plan``.

    The item joins the cluster chosen by ``find_best_cluster`` or seeds a new
    cluster named after its area. Adding an id already in the plan moves it.
    The joined cluster is reordered into day flow when the new item landed
    out of sequence.
    """
    plan, _ = _without_item(plan, item.id)
    assignment = find_best_cluster(plan, item, config)
    if assignment.should_create_new:
        plan, cluster = create_cluster(plan, assignment.suggested_name, [item])
        logger.debug("Created cluster %s (%s) for %s", cluster.id, cluster.name, item.id)
        return plan, assignment.model_copy(update={"cluster_id": cluster.id})

    cluster = _require_cluster(plan, assignment.cluster_id)
    items = [*cluster.items, item]
    if should_reorder_after_add(items, len(items) - 1):
        items = order_items_for_day(items)
    return _replace_cluster(plan, with_stats(cluster, items)), assignment


def remove_item(plan: CityPlan, item_id: str) -> CityPlan:
    plan, removed = _without_item(plan, item_id)
    if removed is None:
        logger.debug("Item %s not in plan %s", item_id, plan.id)
    return plan


def move_item(plan: CityPlan, item_id: str, to_cluster_id: str, index: int | None = None) -> CityPlan:
    _require_cluster(plan, to_cluster_id)
    plan, item = _without_item(plan, item_id)
    if item is None:
        raise KeyError(f"Unknown item {item_id!r} in plan {plan.id!r}")
    target = _require_cluster(plan, to_cluster_id)
    items = list(target.items)
    items.insert(len(items) if index is None else index, item)
    return _replace_cluster(plan, with_stats(target, items))


def reorder_items(plan: CityPlan, cluster_id: str, item_ids: list[str]) -> CityPlan:
    """Put a cluster's items in ``item_ids`` order; ids not listed keep their relative order at the end."""
    cluster = _require_cluster(plan, cluster_id)
    by_id = {i.id: i for i in cluster.items}
    ordered = [by_id[i] for i in item_ids if i in by_id]
    listed = {i.id for i in ordered}
    ordered += [i for i in cluster.items if i.id not in listed]
    return _replace_cluster(plan, with_stats(cluster, ordered))


def rename_cluster(plan: CityPlan, cluster_id: str, name: str) -> CityPlan:
    cluster = _require_cluster(plan, cluster_id)
    return _replace_cluster(plan, cluster.model_copy(update={"name": name}))


def delete_cluster(plan: CityPlan, cluster_id: str) -> CityPlan:
    """Drop a cluster; its members go back to ``unclustered``."""
    cluster = _require_cluster(plan, cluster_id)
    return plan.model_copy(update={
        "clusters": [c for c in plan.clusters if c.id != cluster_id],
        "unclustered": [*plan.unclustered, *cluster.items],
    })
