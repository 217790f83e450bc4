import time
import uuid

from django.core.cache import cache
from django.db import connections
from django.db.utils import OperationalError
from django.http import JsonResponse

from .logger import get_logger

logger = get_logger(__name__).bind(component='common', layer='health')


def _cache_check(timeout: int = 5):
    """Round-trip a probe key; cart identity locks depend on the cache."""
    key = f'health:probe:{uuid.uuid4().hex}'
    try:
        cache.set(key, 'ok', timeout)
        value = cache.get(key)
        cache.delete(key)
    except Exception as e:  # backend specific connection errors
        logger.warning('Cache health check failed', error=str(e))
        return {'status': 'fail', 'error': str(e)}
    if value != 'ok':
        logger.warning('Cache health check returned unexpected value')
        return {'status': 'fail', 'error': 'probe value mismatch'}
    logger.debug('Cache health check succeeded')
    return {'status': 'ok'}


def _db_check(alias='default'):
    started = time.time()
    try:
        conn = connections[alias]
        conn.cursor().execute('SELECT 1')
        latency = round((time.time() - started) * 1000, 2)
        logger.debug('Database health check succeeded', alias=alias, latency_ms=latency)
        return {'status': 'ok', 'latency_ms': latency}
    except OperationalError as e:
        logger.warning('Database health check encountered operational error', alias=alias, error=str(e))
        return {'status': 'fail', 'error': str(e)}
    except Exception as e:  # driver bugs, mocked failures
        logger.error('Database health check failed unexpectedly', alias=alias, error=str(e), exception=e.__class__.__name__)
        return {'status': 'fail', 'error': str(e), 'exception': e.__class__.__name__}


def live_health(request):
    """Liveness probe: process is up and can service requests."""
    logger.debug('Liveness probe served')
    return JsonResponse({'status': 'alive'})


def ready_health(request):
    """Readiness probe: database and the lock cache must both answer."""
    checks = {
        'database': _db_check(),
        'cache': _cache_check(),
    }
    failing = [name for name, r in checks.items() if r.get('status') == 'fail']
    overall_status = 'ok' if not failing else 'degraded'
    http_status = 200 if not failing else 503
    logger.info('Readiness probe evaluated', status=overall_status, failing_components=failing)
    return JsonResponse({'status': overall_status, 'checks': checks}, status=http_status)
