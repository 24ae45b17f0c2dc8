import logging

logger = logging.getLogger("trains")


class TrainCatalogHelpers:
    """
    Read-only lookups against the train catalog.
    The async variants are used by the scheduled booking processor.
    """

    @staticmethod
    async def get_train(train_id):
        """
        Returns the train with the given id, including soft-deleted ones,
        or None if it does not exist.
        """
        from trains.models import Train

        return await Train.all_objects.filter(pk=train_id).afirst()

    @staticmethod
    async def get_train_classes(train_id):
        """
        Returns all classes offered on a train.

        Args:
            train_id: Train primary key

        Returns:
            list: TrainClass objects ordered by class code
        """
        from trains.models import TrainClass

        return [
            train_class
            async for train_class in TrainClass.objects.filter(train_id=train_id).order_by("class_code")
        ]

    @staticmethod
    def find_train_class(train_classes, class_code):
        """
        Picks the entry matching class_code from a list of train classes.
        Returns None when the train does not offer the class.
        """
        wanted = (class_code or "").strip().upper()
        for train_class in train_classes:
            if train_class.class_code.upper() == wanted:
                return train_class
        return None
