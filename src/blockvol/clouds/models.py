"""Definition of Cloud mongoengine models"""

import logging

import mongoengine as me

from blockvol.clouds.controllers.main import controllers

from blockvol.exceptions import ValidationError
from blockvol.exceptions import CloudNotFoundError
from blockvol.exceptions import RequiredParameterMissingError
from blockvol.exceptions import StorageTemplateNotFoundError

from blockvol import config

__all__ = [
    "ComputeTemplate",
    "StorageTemplate",
    "Cloud",
    "AmazonCloud",
]
# This is a map from provider name to provider class, eg:
# 'ec2': AmazonCloud
# It is autofilled by _populate_clouds which is run on the end of this file.
CLOUDS = {}


log = logging.getLogger(__name__)


def _populate_clouds():
    """Populates CLOUDS variable with mappings from providers to clouds"""
    for key, value in list(globals().items()):
        if not key.startswith('_') and key.endswith(
                'Cloud') and key != 'Cloud':
            if not value._controller_cls:
                continue
            if issubclass(value, Cloud) and value is not Cloud:
                CLOUDS[value._controller_cls.provider] = value

    # Add aliases to CLOUDS dictionary
    for key, value in config.PROVIDERS.items():
        cloud_aliases = [key] + value.get('aliases', [])
        cloud_cls = next((CLOUDS.get(alias) for alias in cloud_aliases
                          if CLOUDS.get(alias)), None)
        if cloud_cls:
            for alias in cloud_aliases:
                CLOUDS[alias] = cloud_cls


class ComputeTemplate(me.EmbeddedDocument):
    """Where and how machines are run. Only the region matters to volumes."""
    location_id = me.StringField()
    image_id = me.StringField()
    hardware_id = me.StringField()


class StorageTemplate(me.EmbeddedDocument):
    """Blueprint of the volumes created by `create_volume`

    `size` is in GB. Created volumes are named `<name_prefix>_<timestamp>`.
    `location` is the availability zone used when the caller doesn't provide
    one.
    """
    size = me.IntField(required=True)
    name_prefix = me.StringField(required=True)
    location = me.StringField()
    volume_type = me.StringField()

    def as_dict(self):
        return {
            'size': self.size,
            'name_prefix': self.name_prefix,
            'location': self.location,
            'volume_type': self.volume_type,
        }


class Cloud(me.EmbeddedDocument):
    """Abstract base class for every cloud/provider mongoengine model

    This class defines the fields common to all clouds of all types. For each
    different cloud type, a subclass should be created adding any cloud
    specific fields and methods.

    Clouds are built out of `config.CLOUDS` and are never saved:

        cloud = Cloud.from_settings('aws-eu')

    Each Cloud subclass should define a `_controller_cls` class attribute. Its
    value should be a subclass of
    `blockvol.clouds.controllers.main.base.BaseMainController`. When a cloud
    is instantiated, it is given a `ctl` attribute which gives access to the
    clouds controller. This way it is possible to do things like:

        cloud.ctl.storage.list_volumes('10.0.0.12')

    """

    title = me.StringField(required=True)
    compute_templates = me.MapField(me.EmbeddedDocumentField(ComputeTemplate))
    storage_templates = me.MapField(me.EmbeddedDocumentField(StorageTemplate))

    meta = {
        'allow_inheritance': True,
    }

    _private_fields = ()
    _controller_cls = None

    def __init__(self, *args, **kwargs):
        super(Cloud, self).__init__(*args, **kwargs)

        # Set attribute `ctl` to an instance of the appropriate controller.
        if self._controller_cls is None:
            raise NotImplementedError(
                "Can't initialize %s. Cloud is an abstract base class and "
                "shouldn't be used to create cloud instances. All Cloud "
                "subclasses should define a `_controller_cls` class attribute "
                "pointing to a `BaseMainController` subclass." % self
            )
        elif not issubclass(self._controller_cls,
                            controllers.BaseMainController):
            raise TypeError(
                "Can't initialize %s.  All Cloud subclasses should define a "
                "`_controller_cls` class attribute pointing to a "
                "`BaseMainController` subclass." % self
            )
        self.ctl = self._controller_cls(self)

    @property
    def provider(self):
        return self.ctl.provider

    @classmethod
    def from_dict(cls, title, data):
        """Build a cloud of the right type out of a settings dict

        `data` holds the provider, the credentials and the templates, see
        `config.CLOUDS`.
        """
        data = dict(data)
        provider = data.pop('provider', None)
        if cls is Cloud:
            if not provider:
                raise RequiredParameterMissingError('provider')
            if provider not in CLOUDS:
                raise ValidationError("Invalid provider '%s'." % provider)
            cloud_cls = CLOUDS[provider]
        else:
            cloud_cls = cls
        try:
            compute_templates = {
                name: ComputeTemplate(**template) for name, template in
                (data.pop('compute_templates', None) or {}).items()
            }
            storage_templates = {
                name: StorageTemplate(**template) for name, template in
                (data.pop('storage_templates', None) or {}).items()
            }
            cloud = cloud_cls(title=title,
                              compute_templates=compute_templates,
                              storage_templates=storage_templates, **data)
            cloud.validate()
        except (me.ValidationError, me.FieldDoesNotExist) as exc:
            log.error("Invalid settings for cloud %s: %s", title, exc)
            raise ValidationError("Invalid settings for cloud '%s': %s" % (
                title, exc), exc=exc)
        return cloud

    @classmethod
    def from_settings(cls, title):
        """Build the cloud named `title` in `config.CLOUDS`"""
        try:
            data = config.CLOUDS[title]
        except KeyError:
            raise CloudNotFoundError("Cloud '%s'" % title, title=title)
        return cls.from_dict(title, data)

    def get_storage_template(self, name):
        try:
            return self.storage_templates[name]
        except KeyError:
            raise StorageTemplateNotFoundError(
                "No storage template named '%s' in %s" % (name, self),
                template=name)

    def get_compute_template(self, name):
        try:
            return self.compute_templates[name]
        except KeyError:
            raise ValidationError(
                "No compute template named '%s' in %s" % (name, self),
                template=name)

    def as_dict(self):
        cdict = {
            'title': self.title,
            'provider': self.provider,
            'compute_templates': {
                name: {'location_id': template.location_id}
                for name, template in self.compute_templates.items()},
            'storage_templates': {
                name: template.as_dict()
                for name, template in self.storage_templates.items()},
        }
        cdict.update({key: getattr(self, key)
                      for key in self._cloud_specific_fields
                      if key not in self._private_fields})
        return cdict

    @property
    def _cloud_specific_fields(self):
        return [field for field in type(self)._fields
                if field not in Cloud._fields]

    def __str__(self):
        return '%s %s' % (type(self).__name__, self.title)


class AmazonCloud(Cloud):

    apikey = me.StringField(required=True)
    apisecret = me.StringField(required=True)
    region = me.StringField(required=True)

    _private_fields = ('apisecret', )
    _controller_cls = controllers.AmazonMainController


_populate_clouds()
