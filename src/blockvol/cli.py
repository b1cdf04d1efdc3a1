"""Run volume operations against a cloud from the settings

    blockvol-volumes.py aws-eu list-all
    blockvol-volumes.py aws-eu create SMALL_BLOCK --location eu-west-1a
    blockvol-volumes.py aws-eu attach vol-1234 /dev/sdf 10.0.0.12 -t 5m

"""

import sys
import json
import logging
import argparse

from blockvol.exceptions import BlockvolError
from blockvol.volumes import methods


log = logging.getLogger(__name__)


def prepare_argparse():
    parser = argparse.ArgumentParser(
        description="Manage block storage volumes of a configured cloud")
    parser.add_argument('cloud', help="Title of the cloud in CLOUDS.")
    parser.add_argument('-v', '--verbose', action='count',
                        help="Increase verbosity, can be specified twice.")
    subparsers = parser.add_subparsers(dest='action')
    subparsers.required = True

    def add_timeout(subparser):
        subparser.add_argument('-t', '--timeout',
                               help="Seconds or relative time like '5m'.")

    sub = subparsers.add_parser('list', help="List volumes of a machine.")
    sub.add_argument('address')

    subparsers.add_parser('list-all', help="List all volumes.")

    sub = subparsers.add_parser('create', help="Create a volume.")
    sub.add_argument('template')
    sub.add_argument('-l', '--location', help="Availability zone.")
    add_timeout(sub)

    sub = subparsers.add_parser('attach', help="Attach a volume.")
    sub.add_argument('volume_id')
    sub.add_argument('device')
    sub.add_argument('address')
    add_timeout(sub)

    sub = subparsers.add_parser('detach', help="Detach a volume.")
    sub.add_argument('volume_id')
    sub.add_argument('address')
    add_timeout(sub)

    sub = subparsers.add_parser('delete', help="Delete a volume.")
    sub.add_argument('volume_id')
    sub.add_argument('-l', '--location', help="Availability zone.")
    add_timeout(sub)

    sub = subparsers.add_parser('name', help="Show the name of a volume.")
    sub.add_argument('volume_id')

    sub = subparsers.add_parser(
        'volume-ids',
        help="List ids of the volumes attached to a machine.")
    sub.add_argument('address')

    return parser


def prepare_logging(verbosity=0):
    if verbosity > 1:
        loglvl = logging.DEBUG
    elif verbosity == 1:
        loglvl = logging.INFO
    else:
        loglvl = logging.WARNING
    logging.root.setLevel(loglvl)


def run(args):
    """Run the action in `args` and return something printable"""
    if args.action == 'list':
        return methods.list_volumes(args.cloud, args.address)
    if args.action == 'list-all':
        return methods.list_all_volumes(args.cloud)
    if args.action == 'create':
        return methods.create_volume(args.cloud, args.template,
                                     args.location, args.timeout)
    if args.action == 'attach':
        return methods.attach_volume(args.cloud, args.volume_id,
                                     args.device, args.address,
                                     args.timeout)
    if args.action == 'detach':
        return methods.detach_volume(args.cloud, args.volume_id,
                                     args.address, args.timeout)
    if args.action == 'delete':
        return methods.delete_volume(args.cloud, args.volume_id,
                                     args.location, args.timeout)
    if args.action == 'name':
        return methods.get_volume_name(args.cloud, args.volume_id)
    if args.action == 'volume-ids':
        return methods.get_machine_volume_ids(args.cloud, args.address)
    raise Exception("Unknown action '%s'." % args.action)


def main(argv=None):
    args = prepare_argparse().parse_args(argv)
    prepare_logging(args.verbose or 0)
    try:
        result = run(args)
    except BlockvolError as exc:
        log.error("%s failed: %s", args.action, exc)
        print(exc, file=sys.stderr)
        return 1
    if result is not None:
        print(json.dumps(result, indent=2, sort_keys=True))
    return 0
