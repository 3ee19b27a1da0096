"""
Page-number pagination for the admin survey listings.
"""

from rest_framework.pagination import PageNumberPagination

from npsportal_backend.api_utils import uniform_response


class SurveyPagination(PageNumberPagination):
    """
    Forms, respondents and responses are listed 20 per page; clients may ask
    for up to 100 with ?page_size=. Pages travel inside the uniform envelope.
    """
    page_size = 20
    page_size_query_param = 'page_size'
    max_page_size = 100

    def get_paginated_response(self, data):
        paginator = self.page.paginator
        return uniform_response(
            success=True,
            message=f"Page {self.page.number} of {paginator.num_pages}",
            data={
                'count': paginator.count,
                'total_pages': paginator.num_pages,
                'current_page': self.page.number,
                'page_size': self.get_page_size(self.request),
                'next': self.get_next_link(),
                'previous': self.get_previous_link(),
                'results': data,
            }
        )
