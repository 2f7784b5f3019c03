"""Shared fixtures for the test suites."""

from tsexport import Catalog, Resource, Representation, CatalogItem


def make_catalogs():
    """Two catalogs: A with two representations of one resource, B with one."""
    catalog_a = Catalog(
        "/A/B/C",
        properties={"my-custom-key": "my-custom-value", "nested": {"a": 1, "b": [1, 2]}},
    )
    catalog_b = Catalog("/D/E/F", properties={"owner": "test"})

    resource_1 = Resource("resource1", properties={"unit": "°C", "description": "Temperature"})
    resource_2 = Resource("resource2", properties={"unit": "m/s", "groups": ["wind"]})

    return [
        CatalogItem(catalog_a, resource_1, Representation("1_s_mean")),
        CatalogItem(catalog_a, resource_1, Representation("1_s_max", parameters={"window": "10", "mode": "fast"})),
        CatalogItem(catalog_b, resource_2, Representation("1_s_mean")),
    ]
