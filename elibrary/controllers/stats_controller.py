from flask import Blueprint, request, jsonify

from elibrary.services.stats_service import StatsService
from elibrary.utils.clock import utcnow

stats_bp = Blueprint("stats", __name__)


@stats_bp.get("/overview")
def overview():
    return jsonify({"success": True, "data": StatsService.overview(utcnow())})


@stats_bp.get("/top-borrowed")
def top_borrowed():
    return jsonify({"success": True, "data": StatsService.top_borrowed(request.args.get("limit", 5, type=int))})


@stats_bp.get("/top-reviewed")
def top_reviewed():
    return jsonify({"success": True, "data": StatsService.top_reviewed(request.args.get("limit", 5, type=int))})


@stats_bp.get("/top-rated")
def top_rated():
    return jsonify({"success": True, "data": StatsService.top_rated(request.args.get("limit", 5, type=int))})
