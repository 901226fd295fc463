"""
JSON log formatting and logger naming
"""
import json
import logging

from marketplace.logger import JsonFormatter, get_logger


def _record(**extra):
    record = logging.LogRecord('marketplace.inventory', logging.INFO, __file__, 10,
                               'Reservation refused for product %s', (7,), None)
    record.__dict__.update(extra)
    return record


def test_formats_selected_fields_as_json():
    formatter = JsonFormatter({'level': 'levelname', 'logger': 'name', 'message': 'message'})
    payload = json.loads(formatter.format(_record()))
    assert payload == {
        'level': 'INFO',
        'logger': 'marketplace.inventory',
        'message': 'Reservation refused for product 7',
    }


def test_extra_fields_are_merged():
    formatter = JsonFormatter({'message': 'message'})
    payload = json.loads(formatter.format(_record(product_id=7, requested=3, available=1)))
    assert payload['product_id'] == 7
    assert payload['requested'] == 3
    assert payload['available'] == 1


def test_loggers_share_the_marketplace_root():
    assert get_logger('marketplace.ordering').name == 'marketplace.ordering'
    assert get_logger('ordering').name == 'marketplace.ordering'
    assert get_logger().name == 'marketplace'
