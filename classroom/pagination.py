"""
Query-string helpers shared by every list endpoint.

``?page=2&limit=20&sort=-price,title&fields=title,price&price=gte:100``

``paginate`` and ``build_query`` turn the raw parameters into paging values
and a ``Q`` filter; the DRF classes below plug them into generic views.
"""
import logging
import math
import re
from collections import namedtuple

from django.core.exceptions import FieldError
from django.core.exceptions import ValidationError as DjangoValidationError
from django.db.models import Q
from rest_framework.exceptions import ValidationError
from rest_framework.filters import BaseFilterBackend
from rest_framework.pagination import BasePagination
from rest_framework.response import Response

logger = logging.getLogger(__name__)

DEFAULT_PAGE = 1
DEFAULT_LIMIT = 10
MAX_PAGE_SIZE = 100
DEFAULT_SORT = '-created_at'

RESERVED_PARAMS = ('page', 'limit', 'sort', 'fields', 'search')
OPERATORS = ('gte', 'gt', 'lte', 'lt', 'ne')
TEXT_KEYS = ('name', 'title', 'description')

NUMBER_RE = re.compile(r'^-?\d+(\.\d+)?$')

PageParams = namedtuple('PageParams', ['page', 'limit', 'skip', 'sort'])


def _positive_int(value, default):
    try:
        number = int(value)
    except (TypeError, ValueError):
        return default
    return number if number >= 1 else default


def parse_sort(sort):
    """``"-created_at,title"`` -> ``["-created_at", "title"]``"""
    if not sort:
        return []
    return [part.strip() for part in str(sort).split(',') if part.strip()]


def sort_spec(sort):
    """Same as ``parse_sort`` but as ``{field: -1 | 1}``."""
    spec = {}
    for field in parse_sort(sort):
        if field.startswith('-'):
            spec[field[1:]] = -1
        else:
            spec[field] = 1
    return spec


def paginate(params):
    page = _positive_int(params.get('page'), DEFAULT_PAGE)
    limit = min(_positive_int(params.get('limit'), DEFAULT_LIMIT), MAX_PAGE_SIZE)
    skip = (page - 1) * limit
    sort = parse_sort(params.get('sort') or DEFAULT_SORT)
    return PageParams(page, limit, skip, sort)


def paginate_response(data, page, limit, total):
    total_pages = math.ceil(total / limit) if limit else 0
    return {
        'data': data,
        'pagination': {
            'total': total,
            'page': page,
            'limit': limit,
            'totalPages': total_pages,
            'hasNextPage': page < total_pages,
            'hasPrevPage': page > 1,
        },
    }


def _coerce(value):
    if NUMBER_RE.match(value):
        return float(value) if '.' in value else int(value)
    return value


def build_query(params, allowed_fields=()):
    """
    Translate query parameters into a ``Q`` object.

    ``price=gte:100``      -> ``price__gte=100``
    ``status=ne:draft``    -> ``~Q(status='draft')``
    ``level=Beginner,Advanced`` -> ``level__in=[...]``
    ``title=python``       -> ``title__icontains='python'``
    """
    query = Q()
    for key in params.keys():
        if key in RESERVED_PARAMS:
            continue
        if allowed_fields and key not in allowed_fields:
            continue

        value = params.get(key)
        if value is None or value == '':
            continue
        value = str(value)

        if ':' in value:
            op, raw = value.split(':', 1)
            if op in OPERATORS:
                if op == 'ne':
                    query &= ~Q(**{key: _coerce(raw)})
                else:
                    query &= Q(**{f'{key}__{op}': _coerce(raw)})
                continue
            # unknown operator, match the raw string
            query &= Q(**{key: value})
            continue

        if ',' in value:
            query &= Q(**{f'{key}__in': [v.strip() for v in value.split(',') if v.strip()]})
        elif any(text in key for text in TEXT_KEYS):
            query &= Q(**{f'{key}__icontains': value})
        elif value.lower() in ('true', 'false'):
            query &= Q(**{key: value.lower() == 'true'})
        else:
            query &= Q(**{key: value})
    return query


def select_fields(fields):
    """``"title,-price"`` -> ``(["title"], ["price"])``"""
    include, exclude = [], []
    for field in parse_sort(fields):
        if field.startswith('-'):
            exclude.append(field[1:])
        else:
            include.append(field)
    return include, exclude


class QueryFilterBackend(BaseFilterBackend):
    """
    Applies ``build_query`` to the view's queryset.

    Views list filterable names in ``query_fields``; without it every concrete
    model field is filterable.
    """

    def get_allowed_fields(self, queryset, view):
        fields = getattr(view, 'query_fields', None)
        if fields is not None:
            return tuple(fields)
        return tuple(f.name for f in queryset.model._meta.concrete_fields)

    def filter_queryset(self, request, queryset, view):
        allowed = self.get_allowed_fields(queryset, view)
        if not allowed:
            return queryset
        query = build_query(request.query_params, allowed)
        try:
            return queryset.filter(query)
        except (ValueError, TypeError, FieldError, DjangoValidationError) as exc:
            logger.info('Rejected query %s: %s', dict(request.query_params), exc)
            raise ValidationError({'detail': 'Invalid filter value'})


class QuerySortBackend(BaseFilterBackend):
    """
    ``?sort=-price,title`` restricted to the view's ``sort_fields``.

    Without ``?sort`` the model's own ordering is kept; unordered querysets
    fall back to the ``paginate`` default.
    """

    def filter_queryset(self, request, queryset, view):
        if not request.query_params.get('sort') and queryset.ordered:
            return queryset
        ordering = paginate(request.query_params).sort
        allowed = getattr(view, 'sort_fields', None)
        if allowed is None:
            allowed = [f.name for f in queryset.model._meta.concrete_fields]
        ordering = [field for field in ordering if field.lstrip('-') in allowed]
        if not ordering:
            return queryset
        return queryset.order_by(*ordering)


class StandardPagination(BasePagination):
    """Page/limit pagination wrapping results as ``{data, pagination}``."""

    def paginate_queryset(self, queryset, request, view=None):
        params = paginate(request.query_params)
        self.page = params.page
        self.limit = params.limit
        if isinstance(queryset, list):
            self.total = len(queryset)
        else:
            self.total = queryset.count()
        # past the last page: empty data, not 404
        return list(queryset[params.skip:params.skip + params.limit])

    def get_paginated_response(self, data):
        return Response(paginate_response(data, self.page, self.limit, self.total))

    def get_paginated_response_schema(self, schema):
        return {
            'type': 'object',
            'properties': {
                'data': schema,
                'pagination': {
                    'type': 'object',
                    'properties': {
                        'total': {'type': 'integer'},
                        'page': {'type': 'integer'},
                        'limit': {'type': 'integer'},
                        'totalPages': {'type': 'integer'},
                        'hasNextPage': {'type': 'boolean'},
                        'hasPrevPage': {'type': 'boolean'},
                    },
                },
            },
        }


class DynamicFieldsMixin:
    """Serializer mixin honouring ``?fields=title,-price``."""

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        request = self.context.get('request')
        if request is None or not hasattr(request, 'query_params'):
            return
        include, exclude = select_fields(request.query_params.get('fields'))
        if include:
            for name in set(self.fields) - set(include) - {'id'}:
                self.fields.pop(name)
        for name in exclude:
            self.fields.pop(name, None)
