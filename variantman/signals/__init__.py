"""
Variantman signals.

Signals:
    variants_prepared:
        Sent after VariantDatabaseAdapter.prepare_for_database() builds a
        document, before it is handed to the document store.

        Kwargs:
            sender: VariantDatabaseAdapter class
            document: dict, the prepared document (mutable)

        Example handler::

            from variantman.signals import variants_prepared

            def on_variants_prepared(sender, document, **kwargs):
                document["variantCount"] = len(document.get("variantsSerialized", []))

            variants_prepared.connect(on_variants_prepared)
"""

from django.dispatch import Signal

variants_prepared = Signal()
