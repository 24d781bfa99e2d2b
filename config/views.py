from django.http import JsonResponse


def health_check(request):
    """Liveness probe used by the load balancer."""
    return JsonResponse({'success': True, 'data': {'status': 'ok'}})


def error_404(request, exception):
    """Custom 404 handler."""
    return JsonResponse({
        'success': False,
        'error': 'Not found',
        'code': 'not_found',
    }, status=404)


def error_500(request):
    """Custom 500 handler."""
    return JsonResponse({
        'success': False,
        'error': 'Internal server error',
        'code': 'internal_error',
    }, status=500)
