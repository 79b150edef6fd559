from itempod.session import create_client

ITEM_ID=123456789  # <- Replace with your own item_id


def get_podio_item(item_id):
    # reads the app credentials from PODIO_APP_ID, PODIO_APP_TOKEN, PODIO_CLIENT_ID
    # and PODIO_CLIENT_SECRET
    with create_client() as podio:
        # see https://developers.podio.com/doc/items/get-item-22360
        # get_item() returns a future, result() waits for it and raises on errors
        return podio.get_item(item_id).result()


if __name__ == '__main__':
    item_data = get_podio_item(ITEM_ID)
    # print something from the item_data, then exit
    print(f"Item-ID: {item_data['item_id']}")
    print(f"Item title: {item_data['title']}")
