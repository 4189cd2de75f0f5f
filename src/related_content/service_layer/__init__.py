"""Service layer exposing relatedness queries to rendering callers."""

from related_content.service_layer.related_service import RelatedContentService


__all__ = ["RelatedContentService"]
