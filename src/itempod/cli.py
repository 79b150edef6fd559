import json
import logging
import sys

import click

from itempod.exceptions import ConfigurationError, PodioResponseError
from itempod.session import create_client


def parse_json(ctx, param, value):
    if value is None:
        return None
    try:
        return json.loads(value)
    except ValueError as err:
        raise click.BadParameter('not valid JSON: %s' % err)


@click.group()
@click.option('--app-id', envvar='PODIO_APP_ID', help='Podio app ID.')
@click.option('--app-token', envvar='PODIO_APP_TOKEN', help='Podio app token.')
@click.option('--client-id', envvar='PODIO_CLIENT_ID', help='Podio API client ID.')
@click.option('--client-secret', envvar='PODIO_CLIENT_SECRET', help='Podio API client secret.')
@click.option('--robust', is_flag=True, help='Retry connection errors and server errors.')
@click.option('--verbose', '-v', is_flag=True, help='Log debug output.')
@click.pass_context
def main(ctx, app_id, app_token, client_id, client_secret, robust, verbose):
    """Work with the items of a Podio app."""
    logging.basicConfig(level=logging.DEBUG if verbose else logging.WARNING,
                        format='%(asctime)s %(name)s %(levelname)s %(message)s')
    ctx.obj = {
        'credentials': {
            'app_id': app_id,
            'app_token': app_token,
            'client_id': client_id,
            'client_secret': client_secret,
        },
        'robust': robust,
    }


def run(settings, operation, *args):
    """Create the client, call one of its operations and print the result."""
    ctx = click.get_current_context()
    try:
        client = create_client(settings['credentials'], robust=settings['robust'])
    except ConfigurationError as err:
        raise click.UsageError('%s (option or PODIO_* environment variable)' % err, ctx)
    ctx.with_resource(client)
    try:
        result = getattr(client, operation)(*args).result()
    except PodioResponseError as err:
        click.echo('Podio request failed with status %s:' % err.status_code, err=True)
        click.echo(err.response_raw, err=True)
        sys.exit(1)
    click.echo(json.dumps(result, indent=2, sort_keys=True))


@main.command()
@click.argument('fields', callback=parse_json)
@click.pass_obj
def add(settings, fields):
    """Create an item from a JSON object of field values."""
    run(settings, 'add_new_item', fields)


@main.command()
@click.argument('item_id', type=int)
@click.pass_obj
def get(settings, item_id):
    """Print the item with the given item ID."""
    run(settings, 'get_item', item_id)


@main.command('get-by-app-item-id')
@click.argument('app_item_id', type=int)
@click.pass_obj
def get_by_app_item_id(settings, app_item_id):
    """Print the item with the given app item ID."""
    run(settings, 'get_item_by_app_item_id', app_item_id)


@main.command('filter')
@click.argument('options', required=False, callback=parse_json)
@click.pass_obj
def filter_(settings, options):
    """Filter the items of the app, OPTIONS is a JSON object."""
    run(settings, 'filter_items', options or {})


@main.command()
@click.argument('item_id', type=int)
@click.argument('fields', callback=parse_json)
@click.pass_obj
def update(settings, item_id, fields):
    """Update the fields of an item."""
    run(settings, 'update_item', item_id, fields)


if __name__ == '__main__':
    main()
