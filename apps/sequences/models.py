from django.core.validators import MinValueValidator
from django.db import models


class NumberSequence(models.Model):
    """Per-entity document numbering counter.

    ``current`` always holds the next value that will be handed out.
    """

    entity = models.CharField(max_length=64, primary_key=True)
    current = models.PositiveIntegerField(default=1, validators=[MinValueValidator(1)])
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'number_sequences'
        ordering = ['entity']

    def __str__(self):
        return f"{self.entity}: {self.current}"
