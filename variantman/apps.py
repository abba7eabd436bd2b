from django.apps import AppConfig
from django.utils.translation import gettext_lazy as _


class VariantmanConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "variantman"
    verbose_name = _("Variantes de Produto")

    def ready(self):
        from variantman.conf import get_color_table

        # Fail at startup on a misconfigured COLOR_TABLE / COLOR_DATA_FILE.
        get_color_table()
