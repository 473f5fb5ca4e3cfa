from rest_framework.pagination import PageNumberPagination


class FilePagination(PageNumberPagination):
    # ?page=2&page_size=50, capped so one request cannot pull a whole catalog
    page_size = 20
    page_size_query_param = 'page_size'
    max_page_size = 100
